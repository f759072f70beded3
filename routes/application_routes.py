import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from models.candidate_model import ApplicationForm
from services.api_client import ApiClient
from services.errors import RecruitmentError
from services.forms import parse_form
from services.presentation import candidate_card
from utils import get_api_client, to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applications", tags=["Applications"])


# ✅ CV upload: multipart form straight through to the recruitment API
@router.post("", status_code=201)
async def upload_cv(
    role_id: str = Form(...),
    name: str = Form(...),
    email: str = Form(...),
    phone: Optional[str] = Form(None),
    cv: UploadFile = File(...),
    api: ApiClient = Depends(get_api_client),
):
    """
    Submit a candidate application with a PDF CV.

    Returns:
        dict: The upstream message and the created candidate, if returned.

    Raises:
        HTTPException: 400 for a missing field or non-PDF file, otherwise the
        upstream status.
    """
    logger.info(f"CV upload received for role {role_id}: '{cv.filename}'")
    try:
        form = parse_form(ApplicationForm, {"role_id": role_id, "name": name, "email": email, "phone": phone})
        contents = await cv.read()
        result = await api.create_application(
            form,
            cv_filename=cv.filename or "cv.pdf",
            cv_content=contents,
            cv_content_type=cv.content_type or "",
        )
    except RecruitmentError as e:
        raise to_http_exception(e)
    finally:
        await cv.close()

    return {
        "message": result.message or "CV uploaded successfully",
        "candidate": candidate_card(result.candidate) if result.candidate else None,
    }
