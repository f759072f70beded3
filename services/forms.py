from typing import Any, Dict, List, Mapping, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from services.errors import ValidationError

FormT = TypeVar("FormT", bound=BaseModel)

PDF_CONTENT_TYPE = "application/pdf"


def describe_errors(errors: List[Dict[str, Any]]) -> str:
    """One user-facing line for the first validation error."""
    if not errors:
        return "Invalid input"
    first = errors[0]
    message = first.get("msg", "Invalid value")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    field = ".".join(loc)
    return f"{field}: {message}" if field else message


def parse_form(model: Type[FormT], data: Union[FormT, Mapping[str, Any]]) -> FormT:
    """
    Validate user input into a form model.

    Args:
        model: Form model class (e.g. RegisterForm)
        data: An already-built form instance or a mapping of raw field values

    Returns:
        The validated form instance

    Raises:
        ValidationError: If any field fails validation
    """
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(describe_errors(e.errors())) from e


def validate_cv_file(filename: str, content: bytes, content_type: str = "") -> None:
    """Only non-empty PDF files are accepted as CVs."""
    is_pdf = content_type == PDF_CONTENT_TYPE or (filename or "").lower().endswith(".pdf")
    if not is_pdf:
        raise ValidationError("Please upload PDF files only")
    if not content:
        raise ValidationError("The CV file is empty")
