# utils.py
from typing import AsyncIterator, Optional

import httpx
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import API_BASE_URL, CACHE_TTL_SECONDS, REQUEST_TIMEOUT_SECONDS
from models.user_model import AuthSession
from services.api_client import ApiClient
from services.errors import ApiError, NetworkError, RecruitmentError, ValidationError
from services.events import EventBus, QueryCache

# Browsers without a session still reach public routes (login, register)
security = HTTPBearer(auto_error=False)

# ✅ Process-wide invalidation bus and the read cache listening on it
event_bus = EventBus()
query_cache = QueryCache(event_bus, ttl_seconds=CACHE_TTL_SECONDS)


def get_session(credentials: Optional[HTTPAuthorizationCredentials] = Security(security)) -> AuthSession:
    return AuthSession(token=credentials.credentials if credentials else None)


def get_transport() -> Optional[httpx.AsyncBaseTransport]:
    return None


def get_query_cache() -> Optional[QueryCache]:
    return query_cache


async def get_api_client(
    session: AuthSession = Depends(get_session),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_transport),
    cache: Optional[QueryCache] = Depends(get_query_cache),
) -> AsyncIterator[ApiClient]:
    # One client per request; closing it abandons anything still in flight
    async with ApiClient(
        base_url=API_BASE_URL,
        session=session,
        timeout=REQUEST_TIMEOUT_SECONDS,
        cache=cache,
        events=event_bus,
        transport=transport,
    ) as client:
        yield client


# ✅ Translate gateway errors into the notification payload the dashboard shows
def to_http_exception(error: RecruitmentError) -> HTTPException:
    if isinstance(error, ValidationError):
        status_code = 400
    elif isinstance(error, ApiError):
        status_code = error.status_code if 400 <= error.status_code < 600 else 502
    elif isinstance(error, NetworkError):
        status_code = 502
    else:
        status_code = 500
    return HTTPException(status_code=status_code, detail={"kind": error.kind, "message": error.message})
