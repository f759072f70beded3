from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from models.role_model import RoleForm, RoleStatus
from services.aggregation import role_average, round_half_up, score_buckets, sort_candidates
from services.api_client import ApiClient
from services.errors import RecruitmentError
from services.presentation import candidate_card
from utils import get_api_client, to_http_exception

router = APIRouter(prefix="/roles", tags=["Roles"])


@router.get("")
async def list_roles(
    status: Optional[RoleStatus] = None,
    department: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    api: ApiClient = Depends(get_api_client),
):
    try:
        result = await api.list_roles(status=status, department=department, search=search, page=page, limit=limit)
    except RecruitmentError as e:
        raise to_http_exception(e)
    return result.model_dump(mode="json", by_alias=True)


@router.post("", status_code=201)
async def create_role(form: RoleForm, api: ApiClient = Depends(get_api_client)):
    try:
        result = await api.create_role(form)
    except RecruitmentError as e:
        raise to_http_exception(e)
    return result.model_dump(mode="json", by_alias=True)


@router.get("/{role_id}")
async def get_role(role_id: str = Path(..., description="Role ID"), api: ApiClient = Depends(get_api_client)):
    try:
        role = await api.get_role(role_id)
    except RecruitmentError as e:
        raise to_http_exception(e)
    return {"role": role.model_dump(mode="json", by_alias=True)}


@router.put("/{role_id}")
async def update_role(role_id: str, form: RoleForm, api: ApiClient = Depends(get_api_client)):
    try:
        result = await api.update_role(role_id, form)
    except RecruitmentError as e:
        raise to_http_exception(e)
    return result.model_dump(mode="json", by_alias=True)


@router.delete("/{role_id}")
async def delete_role(role_id: str, api: ApiClient = Depends(get_api_client)):
    try:
        result = await api.delete_role(role_id)
    except RecruitmentError as e:
        raise to_http_exception(e)
    return {"message": result.message or "Role deleted successfully"}


# ✅ Candidates of one role, best score first
@router.get("/{role_id}/candidates")
async def list_role_candidates(role_id: str, api: ApiClient = Depends(get_api_client)):
    try:
        result = await api.list_role_candidates(role_id)
    except RecruitmentError as e:
        raise to_http_exception(e)
    candidates = result.candidates
    return {
        "roleId": role_id,
        "candidates": [candidate_card(c) for c in sort_candidates(candidates, "score")],
        "total": len(candidates),
        "averageScore": round_half_up(role_average(candidates)),
        "scoreDistribution": [b.model_dump(by_alias=True) for b in score_buckets(candidates)],
    }
