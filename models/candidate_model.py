import logging
import math
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from models.base_model import ApiModel, Pagination, lenient_datetime

logger = logging.getLogger(__name__)


class CandidateStatus(str, Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


# Field names used by the applications endpoint, mapped onto the candidate shape
_APPLICATION_KEYS = {
    "candidateName": "name",
    "candidateEmail": "email",
    "candidatePhone": "phone",
    "jobRoleId": "roleId",
}

# Flat evaluation fields some endpoints put on the candidate itself
_FLAT_EVALUATION_KEYS = ("score", "strengths", "weaknesses", "evaluatedAt", "evaluation_date")


def _as_text_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None and str(item).strip()]
    return []


class Evaluation(ApiModel):
    score: Optional[float] = None  # 0–100, None when not scored
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    summary: str = ""
    evaluated_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def normalize_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "evaluation_date" in data:
            data.setdefault("evaluatedAt", data.pop("evaluation_date"))
        for text_key in ("evaluation", "reasoning"):
            if isinstance(data.get(text_key), str):
                data.setdefault("summary", data.pop(text_key))
        return data

    @field_validator("score", mode="before")
    @classmethod
    def score_in_range(cls, value):
        if value is None or value == "" or isinstance(value, bool):
            return None
        try:
            score = float(value)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring non-numeric evaluation score: {value!r}")
            return None
        if math.isnan(score) or not 0 <= score <= 100:
            logger.warning(f"Ignoring out-of-range evaluation score: {value!r}")
            return None
        return score

    @field_validator("strengths", "weaknesses", mode="before")
    @classmethod
    def text_list(cls, value):
        return _as_text_list(value)

    @field_validator("summary", mode="before")
    @classmethod
    def summary_text(cls, value):
        return value if isinstance(value, str) else ""

    @field_validator("evaluated_at", mode="wrap")
    @classmethod
    def parse_evaluated_at(cls, value, handler):
        return lenient_datetime(value, handler)


class Candidate(ApiModel):
    id: str
    name: str = ""
    email: str = ""
    phone: Optional[str] = None
    role_id: Optional[str] = None
    role_title: Optional[str] = None
    cv_url: Optional[str] = None
    applied_at: Optional[datetime] = None
    status: CandidateStatus = CandidateStatus.PENDING
    evaluation: Optional[Evaluation] = None

    @model_validator(mode="before")
    @classmethod
    def normalize_shape(cls, data: Any) -> Any:
        """Fold the application and flat-evaluation shapes into the nested one."""
        if not isinstance(data, dict):
            return data
        data = dict(data)

        for source, target in _APPLICATION_KEYS.items():
            if source in data:
                data.setdefault(target, data.pop(source))

        job_role = data.pop("jobRole", None)
        if isinstance(job_role, dict):
            data.setdefault("roleId", job_role.get("id"))
            data.setdefault("roleTitle", job_role.get("title"))

        evaluation = data.get("evaluation")
        if evaluation is None or isinstance(evaluation, str):
            flat: Dict[str, Any] = {k: data.pop(k) for k in _FLAT_EVALUATION_KEYS if k in data}
            text = data.pop("evaluation", None)
            if isinstance(text, str) and text:
                flat["summary"] = text
            if "applied_at" not in data and "appliedAt" not in data and "evaluation_date" in flat:
                data["appliedAt"] = flat["evaluation_date"]
            data["evaluation"] = flat or None
        return data

    @field_validator("name", "email", mode="before")
    @classmethod
    def text_or_empty(cls, value):
        return value if isinstance(value, str) else ""

    @field_validator("status", mode="before")
    @classmethod
    def known_status(cls, value):
        if isinstance(value, str) and value.lower() in {s.value for s in CandidateStatus}:
            return value.lower()
        return CandidateStatus.PENDING

    @field_validator("applied_at", mode="wrap")
    @classmethod
    def parse_applied_at(cls, value, handler):
        return lenient_datetime(value, handler)

    @property
    def score(self) -> Optional[float]:
        return self.evaluation.score if self.evaluation else None

    @property
    def strengths(self) -> List[str]:
        return self.evaluation.strengths if self.evaluation else []

    @property
    def weaknesses(self) -> List[str]:
        return self.evaluation.weaknesses if self.evaluation else []

    @property
    def summary(self) -> str:
        return self.evaluation.summary if self.evaluation else ""


class CandidateListResponse(ApiModel):
    candidates: List[Candidate] = Field(default_factory=list)
    pagination: Optional[Pagination] = None

    @model_validator(mode="before")
    @classmethod
    def applications_alias(cls, data: Any) -> Any:
        if isinstance(data, dict) and "candidates" not in data and "applications" in data:
            data = dict(data)
            data["candidates"] = data.pop("applications")
        return data


class CandidateEnvelope(ApiModel):
    candidate: Candidate


class ApplicationForm(ApiModel):
    role_id: str
    name: str
    email: EmailStr
    phone: Optional[str] = None

    @field_validator("role_id", "name")
    @classmethod
    def required_text(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("This field is required")
        return value.strip()

    @field_validator("phone")
    @classmethod
    def blank_phone(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value and value.strip() else None


class ApplicationResponse(ApiModel):
    message: str = ""
    candidate: Optional[Candidate] = None

    @model_validator(mode="before")
    @classmethod
    def application_alias(cls, data: Any) -> Any:
        if isinstance(data, dict) and "candidate" not in data and isinstance(data.get("application"), dict):
            data = dict(data)
            data["candidate"] = data.pop("application")
        return data


class ReevaluateResponse(ApiModel):
    message: str = ""
    evaluation: Optional[Evaluation] = None


class EvaluationStats(ApiModel):
    total_evaluations: int = 0
    average_score: float = 0.0
    pending_evaluations: int = 0
