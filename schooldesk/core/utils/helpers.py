from datetime import date, datetime
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from schooldesk.config import settings
from schooldesk.core.exceptions import RemoteAPIError
from schooldesk.models import AttendanceStatus

# Tokens are issued by the remote school API; they are only passed through here.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_bearer_token(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[str]:
    return token or None


def get_default_status() -> AttendanceStatus:
    try:
        return AttendanceStatus(settings.ROSTER_DEFAULT_STATUS)
    except ValueError:
        raise RuntimeError(
            f"ROSTER_DEFAULT_STATUS must be one of: {', '.join(s.value for s in AttendanceStatus)}"
        )


def parse_iso_date(value: str) -> date:
    """Parse a YYYY-MM-DD query value, answering 400 when it is malformed."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Date must be in format: YYYY-MM-DD"
        )


def raise_remote_error(e: RemoteAPIError, action: str):
    # Rejections from the system of record are authoritative; pass them through
    if e.status_code and 400 <= e.status_code < 500:
        raise HTTPException(status_code=e.status_code, detail=e.detail or str(e))
    raise HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=f"Failed to {action}: {str(e)}"
    )
