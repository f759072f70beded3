import logging
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

import config
from models.candidate_model import Candidate
from models.comparison_model import CandidateAnalysis, ComparisonResult, ComparisonStats
from services.aggregation import round_half_up, scored
from services.errors import ApiError, NetworkError, ValidationError

logger = logging.getLogger(__name__)


class SelectionState(str, Enum):
    EMPTY = "empty"
    SELECTING = "selecting"
    READY = "ready_to_compare"
    FULL = "full"


class RejectReason(str, Enum):
    ALREADY_SELECTED = "already_selected"
    SET_FULL = "set_full"


class AddOutcome(BaseModel):
    accepted: bool
    reason: Optional[RejectReason] = None
    message: str = ""


def best_by_score(candidates: List[Candidate]) -> Candidate:
    """argmax(score); the first candidate in selection order wins ties."""
    best = None
    for candidate in candidates:
        if candidate.score is None:
            continue
        if best is None or candidate.score > best.score:
            best = candidate
    return best if best is not None else candidates[0]


def comparison_stats(candidates: List[Candidate]) -> ComparisonStats:
    scores = [c.score for c in scored(candidates)]
    if not scores:
        return ComparisonStats()
    return ComparisonStats(
        max_score=max(scores),
        average_score=round_half_up(sum(scores) / len(scores)),
        spread=max(scores) - min(scores),
    )


def local_comparison(candidates: List[Candidate]) -> ComparisonResult:
    best = best_by_score(candidates)
    if best.score is None:
        justification = f"{best.name} is listed first; none of the {len(candidates)} selected candidates has been scored yet."
    else:
        justification = (
            f"{best.name} has the highest evaluation score ({best.score:g}/100) "
            f"among the {len(candidates)} selected candidates."
        )
    return ComparisonResult(
        best_candidate_name=best.name,
        justification=justification,
        comparison_summary=[
            CandidateAnalysis(candidate_name=c.name, score=c.score, analysis=c.summary) for c in candidates
        ],
        source="local",
    )


class ComparisonSet:
    """
    Bounded, ordered group of candidates compared side by side.

    EMPTY -> SELECTING (1) -> READY (2..max-1) -> FULL (max). Any change to
    the selection discards the last ComparisonResult.
    """

    def __init__(self, max_size: int = config.MAX_COMPARISON_CANDIDATES):
        if max_size < 2:
            raise ValueError(f"A comparison needs room for at least 2 candidates, got max_size={max_size}")
        self.max_size = max_size
        self._selected: List[Candidate] = []
        self.result: Optional[ComparisonResult] = None

    def __len__(self) -> int:
        return len(self._selected)

    def __contains__(self, candidate_id: object) -> bool:
        return any(c.id == candidate_id for c in self._selected)

    @property
    def candidates(self) -> List[Candidate]:
        return list(self._selected)

    @property
    def candidate_ids(self) -> List[str]:
        return [c.id for c in self._selected]

    @property
    def state(self) -> SelectionState:
        count = len(self._selected)
        if count == 0:
            return SelectionState.EMPTY
        if count >= self.max_size:
            return SelectionState.FULL
        if count == 1:
            return SelectionState.SELECTING
        return SelectionState.READY

    @property
    def can_compare(self) -> bool:
        return self.state in (SelectionState.READY, SelectionState.FULL)

    def add(self, candidate: Candidate) -> AddOutcome:
        if candidate.id in self:
            return AddOutcome(
                accepted=False,
                reason=RejectReason.ALREADY_SELECTED,
                message=f"{candidate.name} is already in the comparison",
            )
        if self.state == SelectionState.FULL:
            return AddOutcome(
                accepted=False,
                reason=RejectReason.SET_FULL,
                message=f"You can compare up to {self.max_size} candidates at a time",
            )
        self._selected.append(candidate)
        self.result = None
        return AddOutcome(accepted=True, message=f"{candidate.name} was added to the comparison")

    def remove(self, candidate_id: str) -> None:
        self._selected = [c for c in self._selected if c.id != candidate_id]
        self.result = None

    def stats(self) -> ComparisonStats:
        return comparison_stats(self._selected)

    async def compare(self, client=None, role_id: Optional[str] = None) -> ComparisonResult:
        """
        Pick the best candidate of the current selection.

        Uses the remote comparison service when a client is given and falls
        back to best-by-score when it fails or returns a name outside the set.

        Raises:
            ValidationError: If fewer than 2 candidates are selected
        """
        if not self.can_compare:
            raise ValidationError("Select at least 2 candidates to compare")

        selection = list(self._selected)
        result = None
        if client is not None:
            try:
                remote = await client.compare_candidates(role_id, [c.id for c in selection])
                if remote.best_candidate_name in {c.name for c in selection}:
                    result = remote
                else:
                    logger.warning(
                        f"Remote comparison picked '{remote.best_candidate_name}', who is not in the selection; using local ranking"
                    )
            except (ApiError, NetworkError) as e:
                logger.warning(f"Remote comparison unavailable, using local ranking: {e}")

        if result is None:
            result = local_comparison(selection)

        # The selection may have changed while the remote call was in flight
        if [c.id for c in self._selected] == [c.id for c in selection]:
            self.result = result
        return result
