import logging
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class ApiModel(BaseModel):
    """Base for every upstream resource: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


class MessageResponse(ApiModel):
    message: str = ""


class Pagination(ApiModel):
    current_page: int = 1
    total_pages: int = 1
    total_items: int = 0
    items_per_page: int = 10


def lenient_datetime(value: Any, handler) -> Optional[datetime]:
    """Wrap-validator body: unparseable timestamps become None instead of failing the record."""
    if value in (None, ""):
        return None
    try:
        return handler(value)
    except ValidationError:
        logger.warning(f"Ignoring unparseable timestamp: {value!r}")
        return None
