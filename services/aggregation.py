"""
Derived figures for the candidate lists and the analytics dashboard.

Every function here is total over partial data: candidates without a score
still show up in lists but never in numeric aggregates, and no function
returns NaN or infinity.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from models.candidate_model import Candidate, CandidateStatus
from models.dashboard_model import (
    AnalyticsPayload,
    AnalyticsReport,
    RoleStat,
    ScoreBucket,
    TopCandidate,
    WeeklyApplications,
)
from models.role_model import Role

# (label, lower bound inclusive), highest first
SCORE_BUCKETS: Tuple[Tuple[str, int], ...] = (
    ("90-100", 90),
    ("80-89", 80),
    ("70-79", 70),
    ("60-69", 60),
    ("50-59", 50),
    ("0-49", 0),
)

TOP_CANDIDATES = 4
FEATURED_BUCKET = "90-100"


def round_half_up(value: float) -> int:
    """Nearest integer, .5 rounding away from zero for positives (82.5 -> 83)."""
    return int(math.floor(value + 0.5))


def scored(candidates: Iterable[Candidate]) -> List[Candidate]:
    return [c for c in candidates if c.score is not None]


def score_buckets(candidates: Iterable[Candidate]) -> List[ScoreBucket]:
    counts: Dict[str, int] = {label: 0 for label, _ in SCORE_BUCKETS}
    for candidate in scored(candidates):
        for label, lower in SCORE_BUCKETS:
            if candidate.score >= lower:
                counts[label] += 1
                break
    return [ScoreBucket(range=label, count=counts[label]) for label, _ in SCORE_BUCKETS]


def top_n(candidates: Sequence[Candidate], n: int) -> List[Candidate]:
    """
    Highest scores first. Equal scores keep their input order.

    sorted() is stable and reverse=True preserves that stability, so ties
    are never reordered.
    """
    if n <= 0:
        return []
    return sorted(scored(candidates), key=lambda c: c.score, reverse=True)[:n]


def mean_score(candidates: Iterable[Candidate]) -> float:
    scores = [c.score for c in scored(candidates)]
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


def role_average(candidates: Iterable[Candidate], role_id: Optional[str] = None) -> float:
    """Mean score of the scored candidates (of one role if given); 0 when there are none."""
    if role_id is not None:
        candidates = [c for c in candidates if c.role_id == role_id]
    return mean_score(candidates)


def percentage_change(current: float, previous: float) -> float:
    if previous == 0:
        return 0.0
    return (current - previous) / previous * 100


def role_stats(candidates: Sequence[Candidate], roles: Sequence[Role]) -> List[RoleStat]:
    stats = []
    for role in roles:
        attached = [c for c in candidates if c.role_id == role.id]
        stats.append(
            RoleStat(
                role_id=role.id,
                role=role.title,
                candidates=len(attached) or role.candidate_count,
                avg_score=round_half_up(role_average(attached)),
            )
        )
    return stats


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def weekly_applications(
    candidates: Iterable[Candidate], weeks: int = 5, now: Optional[datetime] = None
) -> List[WeeklyApplications]:
    """Applications per 7-day window, oldest window first, ending at `now`."""
    now = _aware(now or datetime.now(timezone.utc))
    counts = [0] * weeks
    for candidate in candidates:
        if candidate.applied_at is None:
            continue
        age = now - _aware(candidate.applied_at)
        if age < timedelta(0):
            continue
        index = age.days // 7
        if index < weeks:
            counts[weeks - 1 - index] += 1
    return [WeeklyApplications(week=f"Week {i + 1}", applications=count) for i, count in enumerate(counts)]


def filter_candidates(
    candidates: Iterable[Candidate],
    status: Optional[CandidateStatus] = None,
    min_score: Optional[float] = None,
    search: Optional[str] = None,
    role_id: Optional[str] = None,
) -> List[Candidate]:
    needle = (search or "").strip().lower()
    result = []
    for candidate in candidates:
        if status is not None and candidate.status != status:
            continue
        if role_id is not None and candidate.role_id != role_id:
            continue
        if min_score is not None and (candidate.score is None or candidate.score < min_score):
            continue
        if needle and needle not in candidate.name.lower() and needle not in candidate.email.lower():
            continue
        result.append(candidate)
    return result


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def sort_candidates(candidates: Iterable[Candidate], key: str = "score") -> List[Candidate]:
    """Stable sort: score and applied_at descending, name ascending. Missing values go last."""
    candidates = list(candidates)
    if key == "score":
        return sorted(candidates, key=lambda c: c.score if c.score is not None else -1.0, reverse=True)
    if key == "applied_at":
        return sorted(
            candidates,
            key=lambda c: _aware(c.applied_at) if c.applied_at else _EPOCH,
            reverse=True,
        )
    if key == "name":
        return sorted(candidates, key=lambda c: c.name.lower())
    raise ValueError(f"Unknown sort key '{key}'. Must be one of: score, applied_at, name")


def build_analytics(
    candidates: Sequence[Candidate],
    roles: Sequence[Role],
    upstream: Optional[AnalyticsPayload] = None,
    now: Optional[datetime] = None,
) -> AnalyticsReport:
    role_titles = {role.id: role.title for role in roles}
    distribution = score_buckets(candidates)

    weekly = upstream.weekly_applications if upstream and upstream.weekly_applications else None
    if weekly is None:
        weekly = weekly_applications(candidates, now=now)

    applications_change = 0.0
    if len(weekly) >= 2:
        applications_change = percentage_change(weekly[-1].applications, weekly[-2].applications)

    return AnalyticsReport(
        total_candidates=len(candidates),
        total_roles=len(roles),
        average_score=round(mean_score(candidates), 1),
        top_candidates=[
            TopCandidate(
                id=c.id,
                name=c.name,
                score=c.score,
                role=c.role_title or role_titles.get(c.role_id, ""),
            )
            for c in top_n(candidates, TOP_CANDIDATES)
        ],
        score_distribution=distribution,
        role_stats=role_stats(candidates, roles),
        weekly_applications=weekly,
        candidates_change=percentage_change(upstream.candidates_this_month, upstream.candidates_last_month)
        if upstream
        else 0.0,
        roles_change=percentage_change(upstream.roles_this_week, upstream.roles_last_week) if upstream else 0.0,
        applications_change=applications_change,
        featured_candidates=next((b.count for b in distribution if b.range == FEATURED_BUCKET), 0),
    )
