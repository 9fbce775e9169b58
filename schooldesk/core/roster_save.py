import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from schooldesk.core.exceptions import AmbiguousSlot, ValidationFailure
from schooldesk.core.roster_builder import build_roster
from schooldesk.models import (
    PERSISTED_STATUSES, AttendanceRecord, AttendanceStatus, PeriodOption,
    Roster, SaveEntry, SavePayload, Student
)

logger = logging.getLogger(__name__)


def resolve_slot_id(options: Sequence[PeriodOption], chosen: Optional[Union[str, int]] = None) -> int:
    """
    Pick the one timetable period a roster is saved against.

    A single matching period is used as is. With several, the caller must
    have chosen one of them; with none there is nothing to save against.
    """
    ids = [option.id for option in options]
    if chosen is not None and str(chosen) != "":
        if str(chosen) in ids:
            return int(chosen)
        raise AmbiguousSlot(len(ids))

    if len(ids) == 1:
        return int(ids[0])
    raise AmbiguousSlot(len(ids))


def prepare_save_payload(slot_id: int, date: date, roster: Roster) -> SavePayload:
    if not roster.rows:
        raise ValidationFailure(["No students to save."])

    unmarked = [row.student_id for row in roster.rows if row.status not in PERSISTED_STATUSES]
    if unmarked:
        raise ValidationFailure([f"Attendance not marked for student {student_id}." for student_id in unmarked])

    return SavePayload(
        slot_id=int(slot_id),
        date=date,
        entries=[
            SaveEntry(student_id=row.student_id, status=row.status, remarks=row.remarks)
            for row in roster.rows
        ],
    )


def reconcile(
    previous: Roster,
    students: Iterable[Union[Student, Dict[str, Any]]],
    server_records: Iterable[Union[AttendanceRecord, Dict[str, Any]]],
    default_status: AttendanceStatus = AttendanceStatus.PRESENT,
) -> Roster:
    """
    Rebuild the roster from a fresh read after a save.

    The edited roster is not trusted: the bulk upsert may have created
    records whose ids only the reloaded data carries.
    """
    reloaded = build_roster(
        students,
        server_records,
        default_status=default_status,
        date=previous.date,
        slot_id=previous.slot_id,
    )
    stale = detect_stale_rows(previous, reloaded)
    if stale:
        logger.info("Roster reloaded, %d row(s) picked up new record ids", len(stale))
    return reloaded


def detect_stale_rows(previous: Roster, reloaded: Roster) -> List[str]:
    """Students whose saved record id differs between two reads of a roster."""
    before = {row.student_id: row.attendance_record_id for row in previous.rows}
    return [
        row.student_id for row in reloaded.rows
        if row.student_id in before and before[row.student_id] != row.attendance_record_id
    ]
