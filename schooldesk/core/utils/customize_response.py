"""Response envelope shared by every schooldesk route."""
from typing import Any, Optional

from fastapi.responses import JSONResponse
from pydantic import BaseModel


class APIResponse(BaseModel):
    success: bool
    message: str
    data: Optional[Any] = None
    error: Optional[Any] = None


def success_response(message: str, data: Any = None) -> APIResponse:
    return APIResponse(success=True, message=message, data=data)


def error_response(message: str, code: int, details: Any = None) -> JSONResponse:
    """Failure envelope; ``code`` is sent as the HTTP status as well."""
    body = APIResponse(
        success=False,
        message=message,
        error={"code": code, "details": details}
    )
    return JSONResponse(status_code=code, content=body.model_dump())
