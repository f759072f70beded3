import asyncio
import logging

from fastapi import APIRouter, Depends

from models.comparison_model import ComparisonRequest, ComparisonResponse, RejectedCandidate
from services.api_client import ApiClient
from services.comparison import ComparisonSet, RejectReason
from services.errors import RecruitmentError
from utils import get_api_client, to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/comparison", tags=["Comparison"])


@router.post("", response_model=ComparisonResponse)
async def compare_candidates(request: ComparisonRequest, api: ApiClient = Depends(get_api_client)):
    """
    Compare the requested candidates side by side.

    Candidates are added in request order; duplicates and anything beyond the
    comparison limit are reported under `rejected` instead of failing the call.
    Only the candidates that fit in the comparison are fetched upstream.
    """
    selection = ComparisonSet()
    to_fetch = []
    rejected = []
    for candidate_id in request.candidate_ids:
        if candidate_id in to_fetch:
            reason = RejectReason.ALREADY_SELECTED
        elif len(to_fetch) >= selection.max_size:
            reason = RejectReason.SET_FULL
        else:
            to_fetch.append(candidate_id)
            continue
        rejected.append(RejectedCandidate(candidate_id=candidate_id, reason=reason.value))

    try:
        fetched = await asyncio.gather(*(api.get_candidate(candidate_id) for candidate_id in to_fetch))
    except RecruitmentError as e:
        raise to_http_exception(e)

    for candidate_id, candidate in zip(to_fetch, fetched):
        outcome = selection.add(candidate)
        if not outcome.accepted:
            rejected.append(RejectedCandidate(candidate_id=candidate_id, reason=outcome.reason.value))

    if rejected:
        logger.info(f"Comparison skipped {len(rejected)} candidate(s): {[r.reason for r in rejected]}")

    try:
        result = await selection.compare(client=api, role_id=request.role_id)
    except RecruitmentError as e:
        raise to_http_exception(e)

    return ComparisonResponse(
        state=selection.state.value,
        selected_ids=selection.candidate_ids,
        rejected=rejected,
        result=result,
        stats=selection.stats(),
    )
