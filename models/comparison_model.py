from typing import Any, List, Optional

from pydantic import BaseModel, Field, model_validator

from models.base_model import ApiModel


# Upper bound on ids accepted in one request; only the first few are compared
MAX_REQUESTED_IDS = 50


class ComparisonRequest(ApiModel):
    role_id: Optional[str] = None
    candidate_ids: List[str] = Field(min_length=1, max_length=MAX_REQUESTED_IDS)


class CandidateAnalysis(BaseModel):
    candidate_name: str = ""
    score: Optional[float] = None
    analysis: str = ""

    @model_validator(mode="before")
    @classmethod
    def accept_loose_items(cls, data: Any) -> Any:
        # Some comparison backends return bare sentences instead of objects
        if isinstance(data, str):
            return {"analysis": data}
        if isinstance(data, dict) and "candidate_name" not in data and "name" in data:
            data = dict(data)
            data["candidate_name"] = data.pop("name")
        return data


class ComparisonResult(BaseModel):
    best_candidate_name: str
    justification: str = ""
    comparison_summary: List[CandidateAnalysis] = Field(default_factory=list)
    source: str = "remote"


class ComparisonStats(BaseModel):
    max_score: float = 0
    average_score: int = 0
    spread: float = 0


class RejectedCandidate(BaseModel):
    candidate_id: str
    reason: str


class ComparisonResponse(BaseModel):
    state: str
    selected_ids: List[str]
    rejected: List[RejectedCandidate] = Field(default_factory=list)
    result: ComparisonResult
    stats: ComparisonStats
