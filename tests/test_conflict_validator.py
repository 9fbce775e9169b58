import pytest

from schooldesk.core.conflict_validator import (
    CLASS_SECTION_CONFLICT, ROOM_CONFLICT, TEACHER_CONFLICT, ensure_valid, validate
)
from schooldesk.core.exceptions import ValidationFailure


def slot(**fields):
    base = {"day": "Mon", "period": "1st", "class_id": "3", "section_id": "A",
            "subject_id": "11", "teacher_id": "7", "room": "204"}
    base.update(fields)
    return base


CANDIDATE = slot()


def test_required_fields_reported_in_order_and_stop_checks():
    errors = validate({"day": "", "period": "  "}, [slot(id=1)])
    assert errors == [
        "Class is required.",
        "Section is required.",
        "Subject is required.",
        "Teacher is required.",
        "Day is required.",
        "Period is required (used as time slot).",
    ]


def test_one_missing_field_skips_conflict_rules():
    errors = validate(slot(teacher_id=""), [slot(id=1)])
    assert errors == ["Teacher is required."]


def test_empty_timetable_accepts():
    assert validate(CANDIDATE, []) == []


def test_same_class_section_in_same_room_only_flags_class_section():
    existing = [{"id": 1, "day": "Mon", "period": "1st", "teacher_id": "9",
                 "class_id": "3", "section_id": "A", "room": "204"}]
    assert validate(CANDIDATE, existing) == [CLASS_SECTION_CONFLICT]


def test_same_teacher_elsewhere_flags_teacher_only():
    existing = [{"id": 2, "day": "Mon", "period": "1st", "teacher_id": "7",
                 "class_id": "5", "section_id": "B", "room": "101"}]
    assert validate(CANDIDATE, existing) == [TEACHER_CONFLICT]


def test_room_taken_by_another_class_section_case_insensitive():
    existing = [slot(id=3, teacher_id="8", class_id="5", section_id="B", room="lab-1")]
    assert validate(slot(room="LAB-1"), existing) == [ROOM_CONFLICT]


def test_room_rule_skipped_when_candidate_has_no_room():
    existing = [slot(id=3, teacher_id="8", class_id="5", section_id="B", room="204")]
    assert validate(slot(room="  "), existing) == []


def test_all_rules_reported_in_rule_order():
    existing = [
        slot(id=1, teacher_id="7", class_id="9", section_id="Z", room="999"),
        slot(id=2, teacher_id="8", class_id="3", section_id="A", room="998"),
        slot(id=3, teacher_id="6", class_id="5", section_id="B", room="204"),
    ]
    assert validate(CANDIDATE, existing) == [TEACHER_CONFLICT, CLASS_SECTION_CONFLICT, ROOM_CONFLICT]


def test_other_slots_do_not_conflict():
    existing = [slot(id=1, period="2nd"), slot(id=2, day="Tue")]
    assert validate(CANDIDATE, existing) == []


def test_editing_does_not_conflict_with_itself():
    existing = [slot(id=5), slot(id=6, day="Tue")]
    assert validate(slot(id=5), existing) == []
    assert validate(slot(id="5"), existing) == []


@pytest.mark.parametrize("subject_id,teacher_id", [("11", "8"), ("12", "9"), ("99", "1")])
def test_class_section_conflict_regardless_of_subject_or_teacher(subject_id, teacher_id):
    existing = [slot(id=1, subject_id=subject_id, teacher_id=teacher_id, room="")]
    assert CLASS_SECTION_CONFLICT in validate(CANDIDATE, existing)


def test_teacher_conflict_is_symmetric():
    a = slot(id=1, class_id="3", section_id="A", room="")
    b = slot(id=2, class_id="4", section_id="C", room="")
    assert TEACHER_CONFLICT in validate(a, [b])
    assert TEACHER_CONFLICT in validate(b, [a])


def test_mixed_field_conventions_still_conflict():
    existing = [{"id": 1, "class_name": {"id": 5}, "section": "B", "teacher": {"id": 7},
                 "subject": 3, "day_of_week": 1, "period": "1st", "room": "101"}]
    assert validate(CANDIDATE, existing) == [TEACHER_CONFLICT]


def test_validate_is_idempotent():
    existing = [slot(id=1, teacher_id="9")]
    assert validate(CANDIDATE, existing) == validate(CANDIDATE, existing)


def test_ensure_valid_raises_with_messages():
    with pytest.raises(ValidationFailure) as exc:
        ensure_valid(CANDIDATE, [slot(id=1, class_id="8", room="")])
    assert exc.value.messages == [TEACHER_CONFLICT]

    assert ensure_valid(CANDIDATE, []).teacher_id == "7"
