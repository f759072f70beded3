"""Display formatting for dashboard cards. No derivation happens here."""

from typing import Any, Dict, Optional

from models.candidate_model import Candidate, CandidateStatus
from services.aggregation import round_half_up

STATUS_LABELS = {
    CandidateStatus.PENDING: "Pending",
    CandidateStatus.REVIEWED: "Reviewed",
    CandidateStatus.ACCEPTED: "Accepted",
    CandidateStatus.REJECTED: "Rejected",
}


def score_tier(score: Optional[float]) -> str:
    if score is None:
        return "none"
    if score >= 80:
        return "high"
    if score >= 60:
        return "medium"
    return "low"


def score_label(score: Optional[float]) -> str:
    if score is None:
        return "Not evaluated"
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Fair"
    return "Low"


def score_stars(score: Optional[float]) -> int:
    """Five-star rating, one star per 20 points."""
    if score is None:
        return 0
    return max(0, min(5, round_half_up(score / 20)))


def format_score(value: Optional[float]) -> str:
    return "-" if value is None else f"{value:.1f}"


def format_change(percent: float) -> str:
    rounded = round_half_up(percent) if percent >= 0 else -round_half_up(-percent)
    if rounded > 0:
        return f"+{rounded}%"
    return f"{rounded}%"


def initials(name: Optional[str]) -> str:
    parts = (name or "").split()
    if not parts:
        return "??"
    return "".join(part[0] for part in parts).upper()[:2]


def truncate(text: Optional[str], max_length: int = 100) -> str:
    text = text or ""
    if len(text) <= max_length:
        return text
    return text[:max_length].rstrip() + "..."


def status_label(status: CandidateStatus) -> str:
    return STATUS_LABELS.get(status, STATUS_LABELS[CandidateStatus.PENDING])


def candidate_card(candidate: Candidate) -> Dict[str, Any]:
    """Candidate as rendered in lists: the decoded record plus display fields."""
    card = candidate.model_dump(mode="json", by_alias=True)
    card.update(
        {
            "score": candidate.score,
            "initials": initials(candidate.name),
            "scoreLabel": score_label(candidate.score),
            "scoreTier": score_tier(candidate.score),
            "stars": score_stars(candidate.score),
            "statusLabel": status_label(candidate.status),
            "summaryPreview": truncate(candidate.summary),
        }
    )
    return card
