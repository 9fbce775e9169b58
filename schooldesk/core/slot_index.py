"""
Uniform view over timetable / teacher-assignment records.

The remote API is not consistent about field names: the same class can arrive
as ``class_name``, ``class_id`` or ``class``, sometimes as a bare id and
sometimes as a nested ``{"id": ..., "name": ...}`` object, and the weekday can
be a display name or a 0-based integer counted from Sunday. Everything here
maps those shapes onto :class:`SlotAssignment` so that conflict checks compare
like with like.
"""
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence

from schooldesk.models import PeriodOption, SlotAssignment, SubjectOption, Weekday

logger = logging.getLogger(__name__)

CLASS_KEYS = ("class_name", "class_id", "class")
SECTION_KEYS = ("section", "section_id", "section_label")
SUBJECT_KEYS = ("subject", "subject_id")
TEACHER_KEYS = ("teacher", "teacher_id")
DAY_KEYS = ("day_of_week_display", "day_of_week", "day")
SUBJECT_LABEL_KEYS = ("subject_label", "subject_name")

# Integer weekdays on the wire start at Sunday
WEEKDAYS_FROM_SUNDAY = (
    Weekday.SUNDAY,
    Weekday.MONDAY,
    Weekday.TUESDAY,
    Weekday.WEDNESDAY,
    Weekday.THURSDAY,
    Weekday.FRIDAY,
    Weekday.SATURDAY,
)

_DAY_NAMES = {}
for _day in Weekday:
    _DAY_NAMES[_day.value.lower()] = _day
    _DAY_NAMES[_day.name.lower()] = _day


def id_of(raw: Dict[str, Any], keys: Sequence[str]) -> str:
    """First present, non-null value among ``keys`` as a string id."""
    if not raw:
        return ""
    for key in keys:
        value = raw.get(key)
        if value is None:
            continue
        if isinstance(value, dict):
            value = value.get("id")
            if value is None:
                continue
        return str(value).strip()
    return ""


def parse_weekday(value: Any) -> Optional[Weekday]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Weekday):
        return value
    if isinstance(value, int):
        if 0 <= value < len(WEEKDAYS_FROM_SUNDAY):
            return WEEKDAYS_FROM_SUNDAY[value]
        return None
    text = str(value).strip().lower()
    if text.isdigit():
        return parse_weekday(int(text))
    return _DAY_NAMES.get(text)


def day_of(raw: Dict[str, Any]) -> Optional[Weekday]:
    for key in DAY_KEYS:
        day = parse_weekday(raw.get(key))
        if day is not None:
            return day
    return None


def weekday_from_date(value: date) -> Weekday:
    # date.weekday() counts from Monday
    return list(Weekday)[value.weekday()]


def normalize(raw: Dict[str, Any]) -> SlotAssignment:
    """Map one raw assignment/timetable record onto a SlotAssignment."""
    if isinstance(raw, SlotAssignment):
        return raw

    return SlotAssignment(
        id=raw.get("id"),
        day=day_of(raw),
        period=raw.get("period") or "",
        class_id=id_of(raw, CLASS_KEYS),
        section_id=id_of(raw, SECTION_KEYS),
        subject_id=id_of(raw, SUBJECT_KEYS),
        teacher_id=id_of(raw, TEACHER_KEYS),
        room=raw.get("room") or "",
    )


def normalize_all(records: Iterable[Dict[str, Any]]) -> List[SlotAssignment]:
    return [normalize(record) for record in records]


def same_slot(candidate: SlotAssignment, existing: Iterable[SlotAssignment]) -> List[SlotAssignment]:
    """Entries occupying the candidate's (day, period), minus the candidate itself."""
    return [
        entry for entry in existing
        if entry.slot_key == candidate.slot_key
        and (candidate.id is None or entry.id != candidate.id)
    ]


def subjects_for(slots: Iterable[Dict[str, Any]], class_id: str, section_id: str) -> List[SubjectOption]:
    """Unique subjects on the timetable of one class-section, first-seen order."""
    unique: Dict[str, SubjectOption] = {}
    for raw in slots:
        if id_of(raw, CLASS_KEYS) != str(class_id) or id_of(raw, SECTION_KEYS) != str(section_id):
            continue
        subject_id = id_of(raw, SUBJECT_KEYS)
        if subject_id and subject_id not in unique:
            label = next((raw[k] for k in SUBJECT_LABEL_KEYS if raw.get(k)), "")
            unique[subject_id] = SubjectOption(id=subject_id, name=label)
    return list(unique.values())


def period_options(
    slots: Iterable[Dict[str, Any]],
    class_id: str,
    section_id: str,
    subject_id: str,
    day: Weekday,
) -> List[PeriodOption]:
    """Concrete timetable entries a roster for this selection could be saved against."""
    options = []
    for raw in slots:
        if (
            id_of(raw, CLASS_KEYS) == str(class_id)
            and id_of(raw, SECTION_KEYS) == str(section_id)
            and id_of(raw, SUBJECT_KEYS) == str(subject_id)
            and day_of(raw) == day
        ):
            if raw.get("id") is None:
                logger.warning("Timetable entry without id skipped: %s", raw)
                continue
            label = f"{raw.get('start_time') or ''}-{raw.get('end_time') or ''}"
            options.append(PeriodOption(id=str(raw["id"]), label=label))
    return options
