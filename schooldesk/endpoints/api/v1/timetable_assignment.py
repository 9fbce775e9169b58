import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator

from schooldesk.core.conflict_validator import validate
from schooldesk.core.exceptions import RemoteAPIError
from schooldesk.core.slot_index import normalize, parse_weekday
from schooldesk.core.utils.customize_response import success_response, error_response
from schooldesk.core.utils.helpers import raise_remote_error
from schooldesk.models import SlotAssignment
from schooldesk.remote import RemoteAPI, get_remote_api

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/assignments",
    tags=["Teacher Assignment"]
)


# =========================================================
# 🔹 REQUEST SCHEMA
# =========================================================

class AssignmentRequest(BaseModel):
    id: Optional[Union[int, str]] = None
    class_name: Optional[Union[int, str]] = None
    section: Optional[Union[int, str]] = None
    subject: Optional[Union[int, str]] = None
    teacher: Optional[Union[int, str]] = None
    day_of_week: Optional[Union[int, str]] = None
    period: str = ""
    room: str = ""

    @field_validator("day_of_week")
    @classmethod
    def validate_day(cls, v):
        if v is None or not str(v).strip():
            return None
        day = parse_weekday(v)
        if day is None:
            raise ValueError("Day must be 0-6 (from Sunday) or one of: Mon, Tue, Wed, Thu, Fri, Sat, Sun")
        return day.value

    @field_validator("period", "room")
    @classmethod
    def strip_text(cls, v):
        return (v or "").strip()

    def to_remote(self) -> dict:
        """Body for the remote API; foreign keys go out as numbers when they look like numbers."""
        payload = self.model_dump(exclude={"id"})
        for key in ("class_name", "subject", "teacher"):
            value = payload[key]
            if isinstance(value, str) and value.strip().isdigit():
                payload[key] = int(value)
        return payload


def slot_data(slot: SlotAssignment) -> dict:
    return {
        "id": slot.id,
        "day": slot.day.value if slot.day else None,
        "period": slot.period,
        "class_id": slot.class_id,
        "section_id": slot.section_id,
        "subject_id": slot.subject_id,
        "teacher_id": slot.teacher_id,
        "room": slot.room,
    }


def load_existing(remote: RemoteAPI) -> list:
    """Current assignments; an unreachable API leaves nothing to compare against."""
    try:
        return remote.list_assignments()
    except RemoteAPIError as e:
        logger.warning(f"Assignment list unavailable, validating without it: {e}")
        return []


def check_and_save(payload: AssignmentRequest, remote: RemoteAPI, assignment_id: Optional[str] = None):
    candidate = payload.model_dump()
    # Only an edit may skip its own slot; a body id on create is ignored
    candidate["id"] = assignment_id

    errors = validate(candidate, load_existing(remote))
    if errors:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=errors
        )

    if assignment_id is None:
        return remote.create_assignment(payload.to_remote())
    return remote.update_assignment(assignment_id, payload.to_remote())


# =========================================================
# 🔹 LIST ASSIGNMENTS
# =========================================================

@router.get("/")
def list_assignments(remote: RemoteAPI = Depends(get_remote_api)):
    """Teacher assignments in canonical shape, whatever field names the API used."""
    try:
        slots = [normalize(raw) for raw in remote.list_assignments()]
        return success_response(
            message="Assignments retrieved successfully",
            data=[slot_data(slot) for slot in slots]
        )
    except RemoteAPIError as e:
        raise_remote_error(e, "retrieve assignments")


# =========================================================
# 🔹 PRE-FLIGHT CONFLICT CHECK
# =========================================================

@router.post("/validate/")
def validate_assignment(payload: AssignmentRequest, remote: RemoteAPI = Depends(get_remote_api)):
    """
    Check an assignment for conflicts without saving it.

    Teacher, class/section and room double-booking are checked against the
    assignments currently on the remote API.
    """
    errors = validate(payload.model_dump(), load_existing(remote))
    if errors:
        return error_response(
            message="Assignment conflicts with the timetable",
            code=status.HTTP_400_BAD_REQUEST,
            details=errors
        )
    return success_response(
        message="Assignment is valid",
        data=slot_data(normalize(payload.model_dump()))
    )


# =========================================================
# 🔹 CREATE / UPDATE ASSIGNMENT
# =========================================================

@router.post("/", status_code=status.HTTP_201_CREATED)
def create_assignment(payload: AssignmentRequest, remote: RemoteAPI = Depends(get_remote_api)):
    try:
        saved = check_and_save(payload, remote)
        return success_response(message="Assignment created successfully", data=saved)
    except HTTPException:
        raise
    except RemoteAPIError as e:
        raise_remote_error(e, "create assignment")
    except Exception as e:
        logger.exception("Unexpected error while trying to create assignment")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create assignment: {str(e)}"
        )


@router.patch("/{assignment_id}/")
def update_assignment(assignment_id: str, payload: AssignmentRequest, remote: RemoteAPI = Depends(get_remote_api)):
    try:
        saved = check_and_save(payload, remote, assignment_id=assignment_id)
        return success_response(message="Assignment updated successfully", data=saved)
    except HTTPException:
        raise
    except RemoteAPIError as e:
        raise_remote_error(e, "update assignment")
    except Exception as e:
        logger.exception("Unexpected error while trying to update assignment")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update assignment: {str(e)}"
        )


# =========================================================
# 🔹 DELETE ASSIGNMENT
# =========================================================

@router.delete("/{assignment_id}/")
def delete_assignment(assignment_id: str, remote: RemoteAPI = Depends(get_remote_api)):
    """Delete one assignment; other slots are untouched."""
    try:
        remote.delete_assignment(assignment_id)
        return success_response(message="Assignment deleted successfully", data={"id": assignment_id})
    except RemoteAPIError as e:
        raise_remote_error(e, "delete assignment")
