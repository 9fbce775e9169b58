from typing import Any, Dict, Iterable, List, Union

from schooldesk.core.exceptions import ValidationFailure
from schooldesk.core.slot_index import normalize, same_slot
from schooldesk.models import SlotAssignment

TEACHER_CONFLICT = "This teacher is already assigned in this time slot."
CLASS_SECTION_CONFLICT = "This class/section already has a teacher at this time."
ROOM_CONFLICT = "This room is already occupied at this time."

REQUIRED_FIELDS = (
    ("class_id", "Class is required."),
    ("section_id", "Section is required."),
    ("subject_id", "Subject is required."),
    ("teacher_id", "Teacher is required."),
    ("day", "Day is required."),
    ("period", "Period is required (used as time slot)."),
)

RawOrSlot = Union[SlotAssignment, Dict[str, Any]]


def missing_fields(candidate: SlotAssignment) -> List[str]:
    return [message for field, message in REQUIRED_FIELDS if not getattr(candidate, field)]


def validate(candidate: RawOrSlot, existing: Iterable[RawOrSlot]) -> List[str]:
    """
    Check a slot assignment against the assignments already on the timetable.

    Returns the violated rules as human readable messages, in order:
    required fields, teacher, class/section, room. An empty list means the
    assignment may be submitted. Any missing field stops the checks early.

    This is a pre-flight check only: the system of record stays the
    authority on conflicts.
    """
    candidate = normalize(candidate)

    errors = missing_fields(candidate)
    if errors:
        return errors

    occupied = same_slot(candidate, [normalize(entry) for entry in existing])

    if any(entry.teacher_id == candidate.teacher_id for entry in occupied):
        errors.append(TEACHER_CONFLICT)

    if any(entry.class_section == candidate.class_section for entry in occupied):
        errors.append(CLASS_SECTION_CONFLICT)

    # A class-section may keep its own room across split subjects
    if candidate.room:
        room = candidate.room.lower()
        if any(
            entry.room.lower() == room and entry.class_section != candidate.class_section
            for entry in occupied
        ):
            errors.append(ROOM_CONFLICT)

    return errors


def ensure_valid(candidate: RawOrSlot, existing: Iterable[RawOrSlot]) -> SlotAssignment:
    errors = validate(candidate, existing)
    if errors:
        raise ValidationFailure(errors)
    return normalize(candidate)
