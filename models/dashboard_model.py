from enum import Enum
from typing import Any, List, Optional

from pydantic import Field, field_validator, model_validator

from models.base_model import ApiModel


class DashboardStats(ApiModel):
    total_roles: int = 0
    total_candidates: int = 0
    average_score: float = 0.0
    pending_reviews: int = 0

    @model_validator(mode="before")
    @classmethod
    def unwrap_envelope(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("stats"), dict):
            return data["stats"]
        return data


class ActivityType(str, Enum):
    APPLICATION = "application"
    ROLE_CREATED = "role_created"
    EVALUATION = "evaluation"


class ActivityItem(ApiModel):
    id: str
    type: ActivityType
    title: str = ""
    description: str = ""
    time: str = ""
    score: Optional[float] = None


class ActivityFeed(ApiModel):
    activities: List[ActivityItem] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def bare_list(cls, data: Any) -> Any:
        if isinstance(data, list):
            return {"activities": data}
        return data

    @field_validator("activities", mode="before")
    @classmethod
    def known_types_only(cls, value):
        if not isinstance(value, list):
            return []
        known = {t.value for t in ActivityType}
        return [item for item in value if isinstance(item, dict) and item.get("type") in known]


class WeeklyApplications(ApiModel):
    week: str
    applications: int = 0


class AnalyticsPayload(ApiModel):
    """Period counters served by the upstream analytics endpoint."""
    weekly_applications: List[WeeklyApplications] = Field(default_factory=list)
    candidates_this_month: int = 0
    candidates_last_month: int = 0
    roles_this_week: int = 0
    roles_last_week: int = 0


class ScoreBucket(ApiModel):
    range: str
    count: int = 0


class TopCandidate(ApiModel):
    id: str
    name: str
    score: float
    role: str = ""


class RoleStat(ApiModel):
    role_id: str
    role: str
    candidates: int = 0
    avg_score: int = 0


class AnalyticsReport(ApiModel):
    total_candidates: int = 0
    total_roles: int = 0
    average_score: float = 0.0
    top_candidates: List[TopCandidate] = Field(default_factory=list)
    score_distribution: List[ScoreBucket] = Field(default_factory=list)
    role_stats: List[RoleStat] = Field(default_factory=list)
    weekly_applications: List[WeeklyApplications] = Field(default_factory=list)
    candidates_change: float = 0.0
    roles_change: float = 0.0
    applications_change: float = 0.0
    featured_candidates: int = 0
