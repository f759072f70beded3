import logging

from fastapi import APIRouter, Depends

from models.user_model import LoginForm, RegisterForm
from services.api_client import ApiClient
from services.errors import RecruitmentError
from utils import get_api_client, to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login")
async def login(form: LoginForm, api: ApiClient = Depends(get_api_client)):
    try:
        payload = await api.login(form)
    except RecruitmentError as e:
        logger.warning(f"Login failed for {form.email}: {e.message}")
        raise to_http_exception(e)

    return {
        "message": payload.message or "Login successful",
        "token": payload.token,
        "user": payload.user.model_dump(by_alias=True) if payload.user else None,
    }


@router.post("/register", status_code=201)
async def register(form: RegisterForm, api: ApiClient = Depends(get_api_client)):
    try:
        result = await api.register(form)
    except RecruitmentError as e:
        raise to_http_exception(e)

    return {
        "message": result.message or "Account created. Check your email to confirm your account.",
        "user": result.user.model_dump(by_alias=True) if result.user else None,
    }
