from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from models.candidate_model import CandidateStatus
from services.aggregation import filter_candidates, sort_candidates
from services.api_client import ApiClient
from services.errors import RecruitmentError
from services.presentation import candidate_card
from utils import get_api_client, to_http_exception

router = APIRouter(prefix="/candidates", tags=["Candidates"])

SORT_KEYS = ("score", "applied_at", "name")


@router.get("")
async def list_candidates(
    status: Optional[CandidateStatus] = None,
    role_id: Optional[str] = None,
    min_score: Optional[float] = Query(None, ge=0, le=100),
    search: Optional[str] = None,
    sort: str = "score",
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    api: ApiClient = Depends(get_api_client),
):
    if sort not in SORT_KEYS:
        raise HTTPException(
            status_code=400,
            detail={"kind": "validation_error", "message": f"sort must be one of: {', '.join(SORT_KEYS)}"},
        )

    try:
        result = await api.list_candidates(status=status, role_id=role_id, search=search, page=page, limit=limit)
    except RecruitmentError as e:
        raise to_http_exception(e)

    # The backend may ignore some filters; apply them again on the page we got
    candidates = filter_candidates(
        result.candidates, status=status, min_score=min_score, search=search, role_id=role_id
    )
    return {
        "candidates": [candidate_card(c) for c in sort_candidates(candidates, sort)],
        "total": len(candidates),
        "pagination": result.pagination.model_dump(by_alias=True) if result.pagination else None,
    }


@router.get("/evaluations/stats")
async def get_evaluation_stats(api: ApiClient = Depends(get_api_client)):
    try:
        stats = await api.get_evaluation_stats()
    except RecruitmentError as e:
        raise to_http_exception(e)
    return stats.model_dump(by_alias=True)


@router.get("/{candidate_id}")
async def get_candidate(
    candidate_id: str = Path(..., description="Candidate ID"),
    api: ApiClient = Depends(get_api_client),
):
    try:
        candidate = await api.get_candidate(candidate_id)
    except RecruitmentError as e:
        raise to_http_exception(e)

    card = candidate_card(candidate)
    card.update({"strengths": candidate.strengths, "weaknesses": candidate.weaknesses, "summary": candidate.summary})
    return {"candidate": card}


@router.delete("/{candidate_id}")
async def delete_candidate(candidate_id: str, api: ApiClient = Depends(get_api_client)):
    try:
        result = await api.delete_candidate(candidate_id)
    except RecruitmentError as e:
        raise to_http_exception(e)
    return {"message": result.message or "Candidate deleted successfully"}


@router.post("/{candidate_id}/reevaluate")
async def reevaluate_candidate(candidate_id: str, api: ApiClient = Depends(get_api_client)):
    try:
        result = await api.reevaluate(candidate_id)
    except RecruitmentError as e:
        raise to_http_exception(e)
    return {
        "message": result.message or "Re-evaluation requested",
        "evaluation": result.evaluation.model_dump(mode="json", by_alias=True) if result.evaluation else None,
    }
