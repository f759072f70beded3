"""
Async gateway to the recruitment REST API.

Every call attaches the session's bearer token (when there is one), decodes
the JSON body into the resource's model and normalizes failures into
ApiError / NetworkError.
"""

import asyncio
import logging
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Optional, Tuple, Type, TypeVar, Union

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

import config
from models.base_model import MessageResponse
from models.candidate_model import (
    ApplicationForm,
    ApplicationResponse,
    Candidate,
    CandidateEnvelope,
    CandidateListResponse,
    CandidateStatus,
    EvaluationStats,
    ReevaluateResponse,
)
from models.comparison_model import ComparisonResult
from models.dashboard_model import ActivityFeed, AnalyticsPayload, DashboardStats
from models.role_model import Role, RoleEnvelope, RoleForm, RoleListResponse, RoleMutationResponse, RoleStatus
from models.user_model import AuthSession, LoginForm, RegisterForm, RegisterResponse, SessionPayload
from services.errors import ApiError, NetworkError, RequestSuperseded
from services.events import EventBus, QueryCache, Resource
from services.forms import parse_form, validate_cv_file

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

NETWORK_ERROR_MESSAGE = "Unable to reach the recruitment service. Check your connection and try again."


def _error_message(body: Any, status_code: int) -> str:
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return f"HTTP error! status: {status_code}"


def _clean_params(params: Mapping[str, Any]) -> Dict[str, Any]:
    cleaned = {}
    for key, value in params.items():
        if value is None or value == "":
            continue
        cleaned[key] = value.value if hasattr(value, "value") else value
    return cleaned


class ApiClient:
    def __init__(
        self,
        base_url: str = config.API_BASE_URL,
        session: Optional[AuthSession] = None,
        timeout: float = config.REQUEST_TIMEOUT_SECONDS,
        cache: Optional[QueryCache] = None,
        events: Optional[EventBus] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session if session is not None else AuthSession()
        self._cache = cache
        self._events = events if events is not None else (cache.bus if cache else None)
        self._search_task: Optional[asyncio.Future] = None
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._search_task is not None and not self._search_task.done():
            self._search_task.cancel()
        await self._http.aclose()

    # ============ TRANSPORT ============

    def _auth_headers(self) -> Dict[str, str]:
        if self.session.token:
            return {"Authorization": f"Bearer {self.session.token}"}
        return {}

    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        data: Optional[Mapping[str, Any]] = None,
        files: Optional[Mapping[str, Any]] = None,
    ) -> Tuple[int, Any]:
        try:
            response = await self._http.request(
                method,
                path,
                params=_clean_params(params or {}),
                json=json,
                data=data,
                files=files,
                headers=self._auth_headers(),
            )
        except httpx.TransportError as e:
            logger.error(f"Network error on {method} {path}: {e!r}")
            raise NetworkError(NETWORK_ERROR_MESSAGE, cause=e) from e

        try:
            body = response.json() if response.content else None
        except ValueError:
            body = None

        if not response.is_success:
            message = _error_message(body, response.status_code)
            logger.error(f"API request failed: {method} {path} -> {response.status_code}: {message}")
            raise ApiError(message, response.status_code)
        return response.status_code, body

    async def _call(self, model: Type[ModelT], method: str, path: str, **kwargs) -> ModelT:
        status_code, body = await self._send(method, path, **kwargs)
        try:
            return model.model_validate(body if body is not None else {})
        except PydanticValidationError as e:
            logger.error(f"Could not decode {method} {path} response as {model.__name__}: {e}")
            raise ApiError(f"Unexpected response from recruitment service ({model.__name__})", status_code) from e

    async def _cached_get(
        self, resource: Resource, model: Type[ModelT], path: str, params: Optional[Mapping[str, Any]] = None
    ) -> ModelT:
        cleaned = _clean_params(params or {})
        key: Hashable = (self.session.token, path, tuple(sorted(cleaned.items())))
        if self._cache is not None:
            hit = self._cache.get(resource, key)
            if hit is not None:
                return hit.model_copy(deep=True)
        result = await self._call(model, "GET", path, params=cleaned)
        if self._cache is not None:
            self._cache.set(resource, key, result.model_copy(deep=True))
        return result

    def _invalidate(self, *resources: Resource) -> None:
        if self._events is None:
            return
        for resource in resources:
            self._events.publish(resource)

    # ============ AUTH ============

    async def login(self, form: Union[LoginForm, Mapping[str, Any]]) -> SessionPayload:
        form = parse_form(LoginForm, form)
        payload = await self._call(SessionPayload, "POST", "/auth/login", json=form.model_dump(mode="json"))
        self.session.token = payload.token
        self.session.user = payload.user
        logger.info(f"Logged in as {form.email}")
        return payload

    async def register(self, form: Union[RegisterForm, Mapping[str, Any]]) -> RegisterResponse:
        form = parse_form(RegisterForm, form)
        body = form.model_dump(mode="json", exclude={"confirm_password"})
        return await self._call(RegisterResponse, "POST", "/auth/register", json=body)

    def logout(self) -> None:
        self.session.clear()

    # ============ ROLES ============

    async def list_roles(
        self,
        status: Optional[Union[RoleStatus, str]] = None,
        department: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> RoleListResponse:
        params = {"status": status, "department": department, "search": search, "page": page, "limit": limit}
        return await self._cached_get(Resource.ROLES, RoleListResponse, "/roles", params)

    async def get_role(self, role_id: str) -> Role:
        envelope = await self._cached_get(Resource.ROLES, RoleEnvelope, f"/roles/{role_id}")
        return envelope.role

    async def create_role(self, form: Union[RoleForm, Mapping[str, Any]]) -> RoleMutationResponse:
        form = parse_form(RoleForm, form)
        body = form.model_dump(mode="json", by_alias=True, exclude_none=True)
        result = await self._call(RoleMutationResponse, "POST", "/roles", json=body)
        logger.info(f"Role created: {form.title}")
        self._invalidate(Resource.ROLES, Resource.DASHBOARD)
        return result

    async def update_role(self, role_id: str, form: Union[RoleForm, Mapping[str, Any]]) -> RoleMutationResponse:
        form = parse_form(RoleForm, form)
        body = form.model_dump(mode="json", by_alias=True, exclude_none=True)
        result = await self._call(RoleMutationResponse, "PUT", f"/roles/{role_id}", json=body)
        logger.info(f"Role updated: {role_id}")
        self._invalidate(Resource.ROLES, Resource.DASHBOARD)
        return result

    async def delete_role(self, role_id: str) -> MessageResponse:
        result = await self._call(MessageResponse, "DELETE", f"/roles/{role_id}")
        logger.info(f"Role deleted: {role_id}")
        self._invalidate(Resource.ROLES, Resource.DASHBOARD)
        return result

    # ============ CANDIDATES ============

    async def list_role_candidates(self, role_id: str) -> CandidateListResponse:
        return await self._cached_get(Resource.CANDIDATES, CandidateListResponse, f"/roles/{role_id}/candidates")

    async def list_candidates(
        self,
        status: Optional[Union[CandidateStatus, str]] = None,
        role_id: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
    ) -> CandidateListResponse:
        params = {"status": status, "roleId": role_id, "search": search, "page": page, "limit": limit}
        return await self._cached_get(Resource.CANDIDATES, CandidateListResponse, "/candidates", params)

    async def search_candidates(self, query: str, **filters) -> CandidateListResponse:
        """
        Search-as-you-type: only the most recent search is allowed to finish.

        Cancellation only spans calls on the same client, so this is meant for
        callers that keep one ApiClient open across keystrokes. The HTTP routes
        build a client per request and use list_candidates instead.

        Raises:
            RequestSuperseded: If a newer search started before this one completed
        """
        previous = self._search_task
        if previous is not None and not previous.done():
            previous.cancel()

        task = asyncio.ensure_future(self.list_candidates(search=query, **filters))
        self._search_task = task
        try:
            return await task
        except asyncio.CancelledError:
            if self._search_task is not task:
                raise RequestSuperseded(f"Search for {query!r} was replaced by a newer search")
            raise

    async def get_candidate(self, candidate_id: str) -> Candidate:
        envelope = await self._cached_get(Resource.CANDIDATES, CandidateEnvelope, f"/candidates/{candidate_id}")
        return envelope.candidate

    async def delete_candidate(self, candidate_id: str) -> MessageResponse:
        result = await self._call(MessageResponse, "DELETE", f"/candidates/{candidate_id}")
        logger.info(f"Candidate deleted: {candidate_id}")
        self._invalidate(Resource.CANDIDATES, Resource.ROLES, Resource.DASHBOARD)
        return result

    async def create_application(
        self,
        form: Union[ApplicationForm, Mapping[str, Any]],
        cv_filename: str,
        cv_content: bytes,
        cv_content_type: str = "application/pdf",
    ) -> ApplicationResponse:
        """
        Upload a CV against a role.

        Sent as multipart form data; the transport sets the multipart
        boundary, so no Content-Type header is set here.
        """
        form = parse_form(ApplicationForm, form)
        validate_cv_file(cv_filename, cv_content, cv_content_type)

        fields = {
            "jobRoleId": form.role_id,
            "candidateName": form.name,
            "candidateEmail": str(form.email),
        }
        if form.phone:
            fields["candidatePhone"] = form.phone

        result = await self._call(
            ApplicationResponse,
            "POST",
            "/applications",
            data=fields,
            files={"cv": (cv_filename, cv_content, cv_content_type or "application/pdf")},
        )
        logger.info(f"CV '{cv_filename}' uploaded for role {form.role_id}")
        self._invalidate(Resource.CANDIDATES, Resource.ROLES, Resource.DASHBOARD)
        return result

    # ============ EVALUATIONS ============

    async def reevaluate(self, candidate_id: str) -> ReevaluateResponse:
        result = await self._call(
            ReevaluateResponse, "POST", "/evaluations/reevaluate", json={"candidateId": candidate_id}
        )
        logger.info(f"Re-evaluation requested for candidate {candidate_id}")
        self._invalidate(Resource.CANDIDATES, Resource.EVALUATIONS, Resource.DASHBOARD)
        return result

    async def get_evaluation_stats(self) -> EvaluationStats:
        return await self._cached_get(Resource.EVALUATIONS, EvaluationStats, "/evaluations/stats")

    async def compare_candidates(self, role_id: Optional[str], candidate_ids: Iterable[str]) -> ComparisonResult:
        ids: List[str] = [str(candidate_id) for candidate_id in candidate_ids]
        return await self._call(
            ComparisonResult, "POST", "/candidates/compare", json={"roleId": role_id, "candidateIds": ids}
        )

    # ============ DASHBOARD ============

    async def get_dashboard_stats(self) -> DashboardStats:
        return await self._cached_get(Resource.DASHBOARD, DashboardStats, "/dashboard/stats")

    async def get_dashboard_activity(self, limit: int = 10) -> ActivityFeed:
        return await self._cached_get(Resource.DASHBOARD, ActivityFeed, "/dashboard/activity", {"limit": limit})

    async def get_dashboard_analytics(self) -> AnalyticsPayload:
        return await self._cached_get(Resource.DASHBOARD, AnalyticsPayload, "/dashboard/analytics")
