import copy
import logging
from datetime import date
from typing import Any, Dict, Iterable, Optional, Union

from schooldesk.core.slot_index import id_of
from schooldesk.models import AttendanceRecord, AttendanceRow, AttendanceStatus, Roster, Student

logger = logging.getLogger(__name__)

STUDENT_KEYS = ("student", "student_id")


def to_student(raw: Union[Student, Dict[str, Any]]) -> Student:
    if isinstance(raw, Student):
        return raw
    return Student(
        id=raw["id"],
        full_name=raw.get("full_name") or raw.get("fullName") or raw.get("name") or "",
        class_id=id_of(raw, ("class_id", "class_name", "class")) or None,
        section_id=id_of(raw, ("section_id", "section")) or None,
    )


def to_record(
    raw: Union[AttendanceRecord, Dict[str, Any]],
    default_status: AttendanceStatus = AttendanceStatus.PRESENT,
) -> AttendanceRecord:
    if isinstance(raw, AttendanceRecord):
        return raw

    status = raw.get("status") or AttendanceStatus.PRESENT
    if not isinstance(status, AttendanceStatus):
        status = str(status).strip().upper()
        if status not in AttendanceStatus.__members__:
            logger.warning(
                "Unknown attendance status %r in record %s, using %s",
                raw.get("status"), raw.get("id"), default_status.value
            )
            status = default_status
    return AttendanceRecord(
        id=raw.get("id"),
        student=id_of(raw, STUDENT_KEYS),
        status=status,
        remarks=raw.get("remarks") or "",
    )


def build_roster(
    students: Iterable[Union[Student, Dict[str, Any]]],
    records: Iterable[Union[AttendanceRecord, Dict[str, Any]]],
    default_status: AttendanceStatus = AttendanceStatus.PRESENT,
    date: Optional[date] = None,
    slot_id: Optional[int] = None,
) -> Roster:
    """
    Merge a class-section roster with the attendance saved for one date.

    Every student gets exactly one row, in the order the students were given.
    Students with a saved record carry its status, remarks and record id;
    the rest get ``default_status`` and no record id. When the records hold
    two entries for one student the later one wins.
    """
    by_student: Dict[str, AttendanceRecord] = {}
    for raw in records:
        record = to_record(raw, default_status)
        if record.student in by_student:
            logger.warning("Duplicate attendance record for student %s, keeping the later one", record.student)
        by_student[record.student] = record

    rows = []
    for raw in students:
        student = to_student(raw)
        record = by_student.get(student.id)
        if record:
            rows.append(AttendanceRow(
                student_id=student.id,
                student_name=student.full_name,
                status=record.status,
                remarks=record.remarks,
                attendance_record_id=record.id,
            ))
        else:
            rows.append(AttendanceRow(
                student_id=student.id,
                student_name=student.full_name,
                status=default_status,
            ))

    return Roster(date=date, slot_id=slot_id, rows=rows)


def mark_all(roster: Roster, status: AttendanceStatus) -> Roster:
    """Same roster with every row set to ``status``."""
    return roster.model_copy(update={
        "rows": [row.model_copy(update={"status": AttendanceStatus(status)}) for row in roster.rows]
    })


def attach_student_names(report: Optional[Dict[str, Any]], students: Iterable[Union[Student, Dict[str, Any]]]) -> Optional[Dict[str, Any]]:
    """
    Fill student names into an opaque monthly attendance report.

    The report itself is computed by the remote API; only the ``name`` of
    each entry under ``students`` is touched.
    """
    if not report:
        return report

    names = {}
    for raw in students:
        student = to_student(raw)
        names[student.id] = student.full_name

    report = copy.deepcopy(report)
    for entry in report.get("students") or []:
        entry["name"] = names.get(str(entry.get("id"))) or entry.get("name") or ""
    return report


def status_counts(roster: Roster) -> Dict[str, int]:
    counts = {status.value: 0 for status in AttendanceStatus}
    for row in roster.rows:
        counts[row.status.value] += 1
    return counts
