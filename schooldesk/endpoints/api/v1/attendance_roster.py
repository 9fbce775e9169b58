import logging
import datetime
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator

from schooldesk.core.exceptions import AmbiguousSlot, RemoteAPIError, StaleRosterState, ValidationFailure
from schooldesk.core.roster_builder import attach_student_names, build_roster, mark_all, status_counts
from schooldesk.core.roster_save import prepare_save_payload, reconcile, resolve_slot_id
from schooldesk.core.slot_index import parse_weekday, period_options, subjects_for, weekday_from_date
from schooldesk.core.utils.customize_response import success_response
from schooldesk.core.utils.helpers import get_default_status, parse_iso_date, raise_remote_error
from schooldesk.models import AttendanceRow, AttendanceStatus, Roster, Weekday
from schooldesk.remote import RemoteAPI, get_remote_api

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/attendance", tags=["Attendance Roster"])


# =========================================================
# 🔹 REQUEST SCHEMAS
# =========================================================

class SaveRosterRequest(BaseModel):
    class_id: str
    section_id: str
    subject_id: str
    date: datetime.date
    day: Optional[Weekday] = None
    period_id: Optional[Union[int, str]] = None
    rows: List[AttendanceRow]

    @field_validator("class_id", "section_id", "subject_id", mode="before")
    @classmethod
    def id_as_text(cls, v):
        return str(v).strip() if v is not None else v

    @field_validator("day", mode="before")
    @classmethod
    def validate_day(cls, v):
        if v is None or v == "":
            return None
        day = parse_weekday(v)
        if day is None:
            raise ValueError("Day must be a weekday name")
        return day


class MarkAllRequest(BaseModel):
    status: AttendanceStatus
    roster: Roster


def roster_data(roster: Roster) -> dict:
    return {
        "date": roster.date.isoformat() if roster.date else None,
        "slot_id": roster.slot_id,
        "rows": [row.model_dump(mode="json") for row in roster.rows],
        "summary": status_counts(roster),
    }


def resolve_day(day: Optional[str], on: datetime.date) -> Weekday:
    """Weekday used to match timetable periods; follows the date unless overridden."""
    if not day:
        return weekday_from_date(on)
    weekday = parse_weekday(day)
    if weekday is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Day must be a weekday name"
        )
    return weekday


# =========================================================
# 🔹 SELECTION OPTIONS
# =========================================================

@router.get("/subjects/")
def list_subjects(
    class_id: str = Query(..., description="Class ID"),
    section_id: str = Query(..., description="Section ID"),
    remote: RemoteAPI = Depends(get_remote_api)
):
    """Subjects the class-section has on its timetable."""
    try:
        slots = remote.list_timetable(class_id, section_id)
    except RemoteAPIError as e:
        logger.warning(f"Timetable unavailable for class {class_id}-{section_id}: {e}")
        slots = []

    subjects = subjects_for(slots, class_id, section_id)
    return success_response(
        message="Subjects retrieved successfully",
        data=[subject.model_dump() for subject in subjects]
    )


@router.get("/periods/")
def list_periods(
    class_id: str = Query(..., description="Class ID"),
    section_id: str = Query(..., description="Section ID"),
    subject_id: str = Query(..., description="Subject ID"),
    date: str = Query(..., description="Attendance date (YYYY-MM-DD)"),
    day: Optional[str] = Query(None, description="Weekday override for matching periods"),
    remote: RemoteAPI = Depends(get_remote_api)
):
    """Timetable periods a roster for this selection can be saved against."""
    weekday = resolve_day(day, parse_iso_date(date))
    try:
        slots = remote.list_timetable(class_id, section_id)
    except RemoteAPIError as e:
        logger.warning(f"Timetable unavailable for class {class_id}-{section_id}: {e}")
        slots = []

    options = period_options(slots, class_id, section_id, subject_id, weekday)
    return success_response(
        message="Periods retrieved successfully",
        data={
            "day": weekday.value,
            "periods": [option.model_dump() for option in options],
            "selected": options[0].id if len(options) == 1 else None,
        }
    )


# =========================================================
# 🔹 LOAD ROSTER
# =========================================================

@router.get("/roster/")
def load_roster(
    class_id: str = Query(..., description="Class ID"),
    section_id: str = Query(..., description="Section ID"),
    subject_id: str = Query(..., description="Subject ID"),
    date: str = Query(..., description="Attendance date (YYYY-MM-DD)"),
    remote: RemoteAPI = Depends(get_remote_api)
):
    """
    Every student of the class-section with their attendance for one date.

    Students without a saved record get the configured default status.
    When the school API cannot be read the roster comes back empty.
    """
    on = parse_iso_date(date)
    try:
        students = remote.list_students(class_id, section_id)
        records = remote.list_attendance(class_id, section_id, subject_id, on.isoformat())
    except RemoteAPIError as e:
        logger.error(f"Roster load failed for class {class_id}-{section_id} on {on}: {e}")
        return success_response(
            message="No data available",
            data=roster_data(Roster(date=on))
        )

    roster = build_roster(students, records, default_status=get_default_status(), date=on)
    return success_response(
        message="Roster retrieved successfully",
        data=roster_data(roster)
    )


# =========================================================
# 🔹 SAVE ROSTER
# =========================================================

def reload_after_save(remote: RemoteAPI, payload: SaveRosterRequest, edited: Roster) -> Optional[Roster]:
    """Fresh read so new record ids are picked up before the next edit; None when it fails."""
    try:
        students = remote.list_students(payload.class_id, payload.section_id)
        records = remote.list_attendance(
            payload.class_id, payload.section_id, payload.subject_id, payload.date.isoformat()
        )
    except RemoteAPIError as e:
        logger.error(f"Reload after saving slot {edited.slot_id} on {payload.date} failed: {e}")
        return None
    return reconcile(edited, students, records, default_status=get_default_status())


@router.post("/roster/")
def save_roster(payload: SaveRosterRequest, remote: RemoteAPI = Depends(get_remote_api)):
    """
    Save an edited roster as one bulk upsert, then reload it.

    The roster is saved against exactly one timetable period. When the
    selection matches several periods the caller must pick one with
    ``period_id``; with none the save is refused.
    """
    try:
        weekday = payload.day or weekday_from_date(payload.date)
        slots = remote.list_timetable(payload.class_id, payload.section_id)
        options = period_options(slots, payload.class_id, payload.section_id, payload.subject_id, weekday)
        slot_id = resolve_slot_id(options, payload.period_id)

        edited = Roster(date=payload.date, slot_id=slot_id, rows=payload.rows)
        save_payload = prepare_save_payload(slot_id, payload.date, edited)
        remote.save_roster(save_payload)
        logger.info(f"Saved {len(save_payload.entries)} attendance rows for slot {slot_id} on {payload.date}")

        roster = reload_after_save(remote, payload, edited)
        if roster is None:
            return success_response(
                message="Attendance saved, reload unavailable",
                data=roster_data(Roster(date=payload.date, slot_id=slot_id))
            )
        return success_response(
            message="Attendance saved successfully",
            data=roster_data(roster)
        )

    except AmbiguousSlot as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": str(e), "period_count": e.option_count}
        )
    except ValidationFailure as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.messages
        )
    except StaleRosterState as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": str(e), "details": e.detail}
        )
    except RemoteAPIError as e:
        raise_remote_error(e, "save attendance")
    except Exception as e:
        logger.exception("Unexpected error while saving attendance")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to save attendance: {str(e)}"
        )


@router.post("/roster/mark-all/")
def mark_all_rows(payload: MarkAllRequest):
    """Set one status on every row of an edited roster."""
    return success_response(
        message=f"All students marked {payload.status.value}",
        data=roster_data(mark_all(payload.roster, payload.status))
    )


# =========================================================
# 🔹 MONTHLY REPORT
# =========================================================

@router.get("/report/")
def monthly_report(
    class_id: str = Query(..., description="Class ID"),
    section_id: str = Query(..., description="Section ID"),
    month: int = Query(..., ge=1, le=12, description="Month (1-12)"),
    year: int = Query(..., ge=2000, description="Year"),
    subject_id: Optional[str] = Query(None, description="Filter by subject ID"),
    remote: RemoteAPI = Depends(get_remote_api)
):
    """Monthly attendance report from the school API with student full names filled in."""
    try:
        report = remote.monthly_report(class_id, section_id, month, year, subject_id=subject_id)
        students = remote.list_students(class_id, section_id)
    except RemoteAPIError as e:
        logger.error(f"Monthly report unavailable for class {class_id}-{section_id}: {e}")
        return success_response(message="No data available", data=None)

    return success_response(
        message="Report retrieved successfully",
        data=attach_student_names(report, students)
    )
