from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator

from models.base_model import ApiModel, Pagination, lenient_datetime


class RoleStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    CLOSED = "closed"


class RoleForm(ApiModel):
    title: str
    description: str
    requirements: str
    department: Optional[str] = None
    location: Optional[str] = None
    employment_type: Optional[str] = None
    salary_range: Optional[str] = None
    status: Optional[RoleStatus] = None

    @field_validator("title", "description", "requirements")
    @classmethod
    def required_text(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("This field is required")
        return value.strip()

    @field_validator("department", "location", "employment_type", "salary_range")
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()


class Role(ApiModel):
    id: str
    title: str
    description: str = ""
    requirements: str = ""
    department: Optional[str] = None
    location: Optional[str] = None
    employment_type: Optional[str] = None
    salary_range: Optional[str] = None
    status: RoleStatus = RoleStatus.ACTIVE
    candidate_count: int = Field(default=0, ge=0)
    created_at: Optional[datetime] = None

    @field_validator("status", mode="before")
    @classmethod
    def known_status(cls, value):
        # Older records carry no status at all
        if isinstance(value, str) and value.lower() in {s.value for s in RoleStatus}:
            return value.lower()
        return RoleStatus.ACTIVE

    @field_validator("candidate_count", mode="before")
    @classmethod
    def count_or_zero(cls, value):
        try:
            count = int(value)
        except (TypeError, ValueError):
            return 0
        return max(count, 0)

    @field_validator("created_at", mode="wrap")
    @classmethod
    def parse_created_at(cls, value, handler):
        return lenient_datetime(value, handler)


class RoleListResponse(ApiModel):
    roles: List[Role] = Field(default_factory=list)
    pagination: Optional[Pagination] = None


class RoleEnvelope(ApiModel):
    role: Role


class RoleMutationResponse(ApiModel):
    message: str = ""
    role: Optional[Role] = None
