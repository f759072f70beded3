from typing import Optional


class RecruitmentError(Exception):
    """Base class for every error surfaced to the dashboard user."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RecruitmentError):
    """Client-side validation failure. Raised before any network call."""

    kind = "validation_error"


class ApiError(RecruitmentError):
    """The recruitment API answered with a non-success status."""

    kind = "api_error"

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code

    def __str__(self) -> str:
        return f"{self.message} (status {self.status_code})"


class NetworkError(RecruitmentError):
    """No response was obtained (DNS, connection refused, timeout...)."""

    kind = "network_error"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class RequestSuperseded(RecruitmentError):
    """A newer request for the same query replaced this one before it finished."""

    kind = "superseded"
