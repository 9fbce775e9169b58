"""
Client for the remote school API, the system of record for timetables,
students and attendance. Nothing in ``schooldesk.core`` calls it; the
routers fetch data here and hand plain records to the core.
"""
import logging
import time
from typing import Any, Dict, List, Optional

import requests
from fastapi import Depends
from requests.exceptions import ConnectTimeout, RequestException, Timeout

from schooldesk.config import settings
from schooldesk.core.exceptions import RemoteAPIError, StaleRosterState
from schooldesk.core.utils.helpers import get_bearer_token
from schooldesk.models import SavePayload

logger = logging.getLogger(__name__)

# Writes are only re-sent when the connection was never established
IDEMPOTENT_METHODS = ("GET", "HEAD", "DELETE")


def as_list(data: Any) -> List[Dict[str, Any]]:
    """Accept both a bare JSON list and a paginated ``{"results": [...]}`` body."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("results"), list):
        return data["results"]
    return []


class RemoteAPI:
    def __init__(
        self,
        base_url: str = None,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = None,
        max_retries: int = None,
    ):
        self.base_url = (base_url or settings.SCHOOL_API_BASE_URL).rstrip("/") + "/"
        self.timeout = timeout if timeout is not None else settings.SCHOOL_API_TIMEOUT
        self.max_retries = max(1, max_retries if max_retries is not None else settings.SCHOOL_API_MAX_RETRIES)
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def close(self):
        self.session.close()

    # -----------------------------------------------------------------
    # transport
    # -----------------------------------------------------------------
    def _make_request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        """Make HTTP request; reads are retried on connection failures, writes only when no connection was made."""
        url = f"{self.base_url}{endpoint.lstrip('/')}"

        for attempt in range(self.max_retries):
            try:
                response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            except (requests.ConnectionError, Timeout) as e:
                retryable = method.upper() in IDEMPOTENT_METHODS or isinstance(e, ConnectTimeout)
                if not retryable or attempt == self.max_retries - 1:
                    raise RemoteAPIError(f"School API unreachable: {e}") from e
                logger.warning(f"Request attempt {attempt + 1} to {url} failed: {e}")
                time.sleep(0.5 * (attempt + 1))
                continue
            except RequestException as e:
                raise RemoteAPIError(f"School API request failed: {e}") from e

            if response.status_code >= 400:
                raise RemoteAPIError(
                    f"School API answered {response.status_code} for {method} {endpoint}",
                    status_code=response.status_code,
                    detail=self._body(response),
                )
            return response

        raise RemoteAPIError("Max retries exceeded")

    @staticmethod
    def _body(response: requests.Response):
        try:
            return response.json()
        except ValueError:
            return response.text or None

    def _get_list(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        response = self._make_request("GET", endpoint, params=params)
        return as_list(response.json())

    # -----------------------------------------------------------------
    # teacher assignments (timetable slots)
    # -----------------------------------------------------------------
    def list_assignments(self) -> List[Dict[str, Any]]:
        return self._get_list("assign-teachers/")

    def create_assignment(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._make_request("POST", "assign-teachers/", json=payload).json()

    def update_assignment(self, assignment_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._make_request("PATCH", f"assign-teachers/{assignment_id}/", json=payload).json()

    def delete_assignment(self, assignment_id: str) -> None:
        self._make_request("DELETE", f"assign-teachers/{assignment_id}/")

    # -----------------------------------------------------------------
    # attendance
    # -----------------------------------------------------------------
    def list_timetable(self, class_id: Optional[str] = None, section_id: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {}
        if class_id:
            params["class_id"] = class_id
        if section_id:
            params["section_id"] = section_id
        return self._get_list("timetable/", params=params)

    def list_students(self, class_id: str, section_id: str) -> List[Dict[str, Any]]:
        return self._get_list("students/", params={"class_id": class_id, "section_id": section_id})

    def list_attendance(self, class_id: str, section_id: str, subject_id: str, date: str) -> List[Dict[str, Any]]:
        return self._get_list("attendance/", params={
            "class_id": class_id,
            "section_id": section_id,
            "subject_id": subject_id,
            "date": date,
        })

    def save_roster(self, payload: SavePayload) -> Any:
        try:
            response = self._make_request("POST", "attendance/roster/", json=payload.to_remote())
        except RemoteAPIError as e:
            if e.status_code == 409:
                raise StaleRosterState(detail=e.detail) from e
            raise
        return self._body(response)

    def monthly_report(
        self,
        class_id: str,
        section_id: str,
        month: int,
        year: int,
        subject_id: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        params = {"class_id": class_id, "section_id": section_id, "month": month, "year": year}
        if subject_id:
            params["subject_id"] = subject_id
        return self._make_request("GET", "attendance/report/", params=params).json() or None


def get_remote_api(token: Optional[str] = Depends(get_bearer_token)):
    remote = RemoteAPI(token=token)
    try:
        yield remote
    finally:
        remote.close()
