# main.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import ALLOWED_ORIGINS, LOG_LEVEL
from routes.auth_routes import router as auth_router
from routes.role_routes import router as role_router
from routes.candidate_routes import router as candidate_router
from routes.application_routes import router as application_router
from routes.comparison_routes import router as comparison_router
from routes.dashboard_routes import router as dashboard_router
from services.forms import describe_errors

logging.basicConfig(level=LOG_LEVEL)

app = FastAPI(
    title="Recruitment Dashboard API",
    description="Dashboard backend for roles, candidates, CV uploads, comparison and analytics",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Form validation failures are shown like every other notification
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": {"kind": "validation_error", "message": describe_errors(exc.errors())}},
    )


app.include_router(auth_router)
app.include_router(role_router)
app.include_router(candidate_router)
app.include_router(application_router)
app.include_router(comparison_router)
app.include_router(dashboard_router)

@app.get("/")
def root():
    return {"message": "Recruitment dashboard backend running"}
