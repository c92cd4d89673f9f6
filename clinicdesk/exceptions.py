import logging
from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ClinicDeskError(Exception):
    """Base class for errors scoped to a single front-desk operation."""
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(ClinicDeskError):
    """Raised before any store call when the submitted form is incomplete or malformed."""
    status_code = 400


class ConflictError(ClinicDeskError):
    """Raised by the pre-write check when the dentist already has that slot."""
    status_code = 409


class StoreError(ClinicDeskError):
    """Raised by records store adapters when a query or write fails."""
    status_code = 502


class RecordNotFound(StoreError):
    status_code = 404


def create_error_response(error_message: str, status_code: int = 400) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": None,
        "error": error_message
    }

def create_success_response(data) -> dict:
    """Create a standardized success response"""
    return {
        "success": True,
        "data": data,
        "error": None
    }

async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code)
    )

async def clinicdesk_exception_handler(request: Request, exc: ClinicDeskError) -> JSONResponse:
    if isinstance(exc, StoreError) and not isinstance(exc, RecordNotFound):
        logger.error(f"Records store failure on {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code)
    )
