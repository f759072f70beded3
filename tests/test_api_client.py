"""
Tests for the async gateway client against a fake upstream.

Run: pytest tests/test_api_client.py -v
"""

import asyncio

import httpx
import pytest
from conftest import FakeUpstream, candidate_json, request_json, run

from models.user_model import AuthSession
from services.api_client import ApiClient
from services.errors import ApiError, NetworkError, RequestSuperseded, ValidationError
from services.events import EventBus, QueryCache, Resource

BASE_URL = "http://upstream.test/api"


def make_client(upstream, **kwargs) -> ApiClient:
    return ApiClient(base_url=BASE_URL, transport=httpx.MockTransport(upstream), **kwargs)


@pytest.fixture
def upstream():
    return FakeUpstream(prefix="/api")


# ---------------------------------------------------------------------------
# Authentication header
# ---------------------------------------------------------------------------

class TestBearerToken:
    def test_token_omitted_without_session(self, upstream):
        upstream.on("GET", "/roles", (200, {"roles": []}))

        async def scenario():
            async with make_client(upstream) as api:
                await api.list_roles()

        run(scenario())
        assert "authorization" not in upstream.last("GET", "/roles").headers

    def test_token_attached_from_session(self, upstream):
        upstream.on("GET", "/roles", (200, {"roles": []}))

        async def scenario():
            async with make_client(upstream, session=AuthSession(token="abc123")) as api:
                await api.list_roles(status="active", search="dev")

        run(scenario())
        request = upstream.last("GET", "/roles")
        assert request.headers["authorization"] == "Bearer abc123"
        assert request.url.params["status"] == "active"
        assert request.url.params["search"] == "dev"
        assert "department" not in request.url.params

    def test_login_stores_session(self, upstream):
        upstream.on(
            "POST",
            "/auth/login",
            (200, {"message": "ok", "token": "tok-1", "user": {"id": 5, "email": "hr@acme.com", "name": "HR"}}),
        )
        upstream.on("GET", "/dashboard/stats", (200, {"totalRoles": 3}))

        async def scenario():
            async with make_client(upstream) as api:
                payload = await api.login({"email": "hr@acme.com", "password": "secret"})
                await api.get_dashboard_stats()
                return api.session, payload

        session, payload = run(scenario())
        assert payload.token == "tok-1"
        assert session.token == "tok-1"
        assert session.user.id == "5"
        assert request_json(upstream.last("POST", "/auth/login")) == {"email": "hr@acme.com", "password": "secret"}
        assert upstream.last("GET", "/dashboard/stats").headers["authorization"] == "Bearer tok-1"

    def test_logout_clears_session(self, upstream):
        async def scenario():
            async with make_client(upstream, session=AuthSession(token="t")) as api:
                api.logout()
                return api.session

        session = run(scenario())
        assert session.token is None
        assert not session.is_authenticated


# ---------------------------------------------------------------------------
# Error normalization
# ---------------------------------------------------------------------------

class TestErrors:
    def test_api_error_carries_server_message(self, upstream):
        upstream.on("GET", "/roles/9", (404, {"message": "Role not found"}))

        async def scenario():
            async with make_client(upstream) as api:
                await api.get_role("9")

        with pytest.raises(ApiError) as info:
            run(scenario())
        assert info.value.message == "Role not found"
        assert info.value.status_code == 404

    def test_api_error_without_json_body(self, upstream):
        upstream.on("GET", "/dashboard/stats", lambda request: httpx.Response(503, text="upstream down"))

        async def scenario():
            async with make_client(upstream) as api:
                await api.get_dashboard_stats()

        with pytest.raises(ApiError) as info:
            run(scenario())
        assert info.value.message == "HTTP error! status: 503"

    def test_network_error_wraps_cause(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        async def scenario():
            async with ApiClient(base_url=BASE_URL, transport=httpx.MockTransport(refuse)) as api:
                await api.list_candidates()

        with pytest.raises(NetworkError) as info:
            run(scenario())
        assert isinstance(info.value.cause, httpx.ConnectError)
        assert not isinstance(info.value, ApiError)

    def test_undecodable_success_body_is_api_error(self, upstream):
        upstream.on("GET", "/candidates/1", (200, {"unexpected": True}))

        async def scenario():
            async with make_client(upstream) as api:
                await api.get_candidate("1")

        with pytest.raises(ApiError) as info:
            run(scenario())
        assert info.value.status_code == 200


# ---------------------------------------------------------------------------
# Client-side validation happens before the network
# ---------------------------------------------------------------------------

class TestValidation:
    def test_register_password_mismatch(self, upstream):
        async def scenario():
            async with make_client(upstream) as api:
                await api.register(
                    {
                        "name": "Juan Perez",
                        "email": "juan@acme.com",
                        "password": "secret1",
                        "confirm_password": "secret2",
                        "company": "Acme",
                    }
                )

        with pytest.raises(ValidationError) as info:
            run(scenario())
        assert "Passwords do not match" in info.value.message
        assert upstream.requests == []

    def test_register_sends_without_confirmation(self, upstream):
        upstream.on("POST", "/auth/register", (201, {"message": "created", "user": {"id": 1, "email": "juan@acme.com"}}))

        async def scenario():
            async with make_client(upstream) as api:
                return await api.register(
                    {
                        "name": "Juan Perez",
                        "email": "juan@acme.com",
                        "password": "secret1",
                        "confirm_password": "secret1",
                        "company": "Acme",
                    }
                )

        result = run(scenario())
        assert result.message == "created"
        body = request_json(upstream.last("POST", "/auth/register"))
        assert "confirm_password" not in body
        assert body["company"] == "Acme"

    def test_role_requires_title(self, upstream):
        async def scenario():
            async with make_client(upstream) as api:
                await api.create_role({"title": "  ", "description": "d", "requirements": "r"})

        with pytest.raises(ValidationError):
            run(scenario())
        assert upstream.requests == []

    def test_cv_must_be_pdf(self, upstream):
        async def scenario():
            async with make_client(upstream) as api:
                await api.create_application(
                    {"role_id": "r1", "name": "Ana", "email": "ana@example.com"},
                    cv_filename="cv.docx",
                    cv_content=b"data",
                    cv_content_type="application/msword",
                )

        with pytest.raises(ValidationError):
            run(scenario())
        assert upstream.requests == []


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class TestBodies:
    def test_create_role_uses_camel_case_json(self, upstream):
        upstream.on("POST", "/roles", (201, {"message": "created", "role": {"id": 1, "title": "Backend"}}))

        async def scenario():
            async with make_client(upstream) as api:
                return await api.create_role(
                    {
                        "title": "Backend",
                        "description": "APIs",
                        "requirements": "Python",
                        "employment_type": "full-time",
                    }
                )

        result = run(scenario())
        request = upstream.last("POST", "/roles")
        assert request.headers["content-type"] == "application/json"
        body = request_json(request)
        assert body["employmentType"] == "full-time"
        assert "salaryRange" not in body
        assert result.role.title == "Backend"

    def test_cv_upload_is_multipart(self, upstream):
        upstream.on(
            "POST",
            "/applications",
            (201, {"message": "uploaded", "application": {"id": 11, "candidateName": "Ana Garcia"}}),
        )

        async def scenario():
            async with make_client(upstream, session=AuthSession(token="t")) as api:
                return await api.create_application(
                    {"role_id": "r1", "name": "Ana Garcia", "email": "ana@example.com", "phone": "123"},
                    cv_filename="ana.pdf",
                    cv_content=b"%PDF-1.4 fake",
                )

        result = run(scenario())
        request = upstream.last("POST", "/applications")
        content_type = request.headers["content-type"]
        assert content_type.startswith("multipart/form-data; boundary=")
        payload = request.content
        assert b'name="cv"; filename="ana.pdf"' in payload
        assert b'name="jobRoleId"' in payload
        assert b'name="candidatePhone"' in payload
        assert result.candidate.name == "Ana Garcia"

    def test_compare_candidates_body(self, upstream):
        upstream.on(
            "POST",
            "/candidates/compare",
            (200, {"best_candidate_name": "Ana", "justification": "Best fit", "comparison_summary": []}),
        )

        async def scenario():
            async with make_client(upstream) as api:
                return await api.compare_candidates("r1", ["1", "2"])

        result = run(scenario())
        assert request_json(upstream.last("POST", "/candidates/compare")) == {
            "roleId": "r1",
            "candidateIds": ["1", "2"],
        }
        assert result.best_candidate_name == "Ana"


# ---------------------------------------------------------------------------
# Cache and invalidation
# ---------------------------------------------------------------------------

class TestCache:
    def test_reads_are_cached_until_a_mutation(self, upstream):
        upstream.on("GET", "/roles", (200, {"roles": [{"id": 1, "title": "Frontend"}]}))
        upstream.on("POST", "/roles", (201, {"message": "created"}))
        cache = QueryCache(EventBus(), ttl_seconds=60)

        async def scenario():
            async with make_client(upstream, cache=cache) as api:
                await api.list_roles()
                await api.list_roles()
                await api.create_role({"title": "Backend", "description": "d", "requirements": "r"})
                await api.list_roles()

        run(scenario())
        assert upstream.count("GET", "/roles") == 2

    def test_cache_is_per_token(self, upstream):
        upstream.on("GET", "/dashboard/stats", (200, {"totalRoles": 1}))
        cache = QueryCache(EventBus(), ttl_seconds=60)

        async def scenario():
            async with make_client(upstream, cache=cache, session=AuthSession(token="a")) as api:
                await api.get_dashboard_stats()
            async with make_client(upstream, cache=cache, session=AuthSession(token="b")) as api:
                await api.get_dashboard_stats()

        run(scenario())
        assert upstream.count("GET", "/dashboard/stats") == 2

    def test_upload_invalidates_candidates_and_roles(self, upstream):
        bus = EventBus()
        published = []
        for resource in Resource:
            bus.subscribe(resource, lambda r, payload: published.append(r))
        upstream.on("POST", "/applications", (201, {"message": "ok"}))

        async def scenario():
            async with make_client(upstream, events=bus) as api:
                await api.create_application(
                    {"role_id": "r1", "name": "Ana", "email": "ana@example.com"},
                    cv_filename="cv.pdf",
                    cv_content=b"%PDF",
                )

        run(scenario())
        assert published == [Resource.CANDIDATES, Resource.ROLES, Resource.DASHBOARD]


# ---------------------------------------------------------------------------
# Search-as-you-type
# ---------------------------------------------------------------------------

def test_superseded_search_is_cancelled():
    async def handler(request):
        if request.url.params["search"] == "an":
            await asyncio.sleep(0.2)
        return httpx.Response(
            200, json={"candidates": [candidate_json("1", "Ana Garcia", 90)], "search": request.url.params["search"]}
        )

    async def scenario():
        async with ApiClient(base_url=BASE_URL, transport=httpx.MockTransport(handler)) as api:
            first = asyncio.ensure_future(api.search_candidates("an"))
            await asyncio.sleep(0.01)
            latest = await api.search_candidates("ana")
            with pytest.raises(RequestSuperseded):
                await first
            return latest

    latest = run(scenario())
    assert [c.name for c in latest.candidates] == ["Ana Garcia"]


def test_searches_on_separate_clients_do_not_cancel_each_other():
    async def handler(request):
        await asyncio.sleep(0.05)
        return httpx.Response(200, json={"candidates": [candidate_json("1", "Ana Garcia", 90)]})

    async def search(query):
        async with ApiClient(base_url=BASE_URL, transport=httpx.MockTransport(handler)) as api:
            return await api.search_candidates(query)

    async def scenario():
        return await asyncio.gather(search("an"), search("ana"))

    first, second = run(scenario())
    assert len(first.candidates) == 1
    assert len(second.candidates) == 1
