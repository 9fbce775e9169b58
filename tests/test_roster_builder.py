from datetime import date

from schooldesk.core.roster_builder import attach_student_names, build_roster, mark_all, status_counts
from schooldesk.models import AttendanceStatus


def test_two_students_one_record():
    roster = build_roster(
        [{"id": 1, "fullName": "A"}, {"id": 2, "fullName": "B"}],
        [{"student": 2, "status": "ABSENT", "remarks": "sick", "id": 99}],
    )
    assert [row.model_dump() for row in roster.rows] == [
        {"student_id": "1", "student_name": "A", "status": AttendanceStatus.PRESENT,
         "remarks": "", "attendance_record_id": None},
        {"student_id": "2", "student_name": "B", "status": AttendanceStatus.ABSENT,
         "remarks": "sick", "attendance_record_id": "99"},
    ]


def test_no_records_defaults_every_row(students):
    roster = build_roster(students, [])
    assert len(roster.rows) == len(students)
    assert all(row.status == AttendanceStatus.PRESENT for row in roster.rows)
    assert all(row.attendance_record_id is None for row in roster.rows)
    assert all(row.remarks == "" for row in roster.rows)


def test_unmarked_default_policy(students):
    roster = build_roster(students, [], default_status=AttendanceStatus.UNMARKED)
    assert {row.status for row in roster.rows} == {AttendanceStatus.UNMARKED}


def test_full_records_carried_in_student_order(students):
    records = [
        {"id": 30, "student": 3, "status": "late", "remarks": "bus"},
        {"id": 10, "student": {"id": 1}, "status": "EXCUSED", "remarks": None},
        {"id": 20, "student_id": "2", "status": "ABSENT", "remarks": "fever"},
    ]
    roster = build_roster(students, records, date=date(2024, 9, 2), slot_id=10)

    assert roster.date == date(2024, 9, 2)
    assert roster.slot_id == 10
    assert [(r.student_id, r.student_name, r.status, r.remarks, r.attendance_record_id) for r in roster.rows] == [
        ("1", "Anika Rahman", AttendanceStatus.EXCUSED, "", "10"),
        ("2", "Bilal Hossain", AttendanceStatus.ABSENT, "fever", "20"),
        ("3", "Chaity Das", AttendanceStatus.LATE, "bus", "30"),
    ]


def test_records_for_unknown_students_are_ignored(students):
    roster = build_roster(students, [{"id": 5, "student": 42, "status": "ABSENT"}])
    assert len(roster.rows) == 3
    assert all(row.attendance_record_id is None for row in roster.rows)


def test_duplicate_records_later_one_wins(students):
    records = [
        {"id": 1, "student": 2, "status": "ABSENT", "remarks": "first"},
        {"id": 2, "student": 2, "status": "LATE", "remarks": "second"},
    ]
    row = build_roster(students, records).rows[1]
    assert (row.status, row.remarks, row.attendance_record_id) == (AttendanceStatus.LATE, "second", "2")


def test_repeated_builds_are_identical(students):
    records = [{"id": 7, "student": 1, "status": "ABSENT"}]
    assert build_roster(students, records) == build_roster(students, records)


def test_mark_all_returns_new_roster(students):
    roster = build_roster(students, [{"id": 7, "student": 1, "status": "LATE", "remarks": "bus"}])
    absent = mark_all(roster, AttendanceStatus.ABSENT)

    assert {row.status for row in absent.rows} == {AttendanceStatus.ABSENT}
    assert absent.rows[0].remarks == "bus"
    assert absent.rows[0].attendance_record_id == "7"
    assert roster.rows[0].status == AttendanceStatus.LATE


def test_status_counts(students):
    roster = build_roster(students, [{"id": 7, "student": 1, "status": "ABSENT"}])
    counts = status_counts(roster)
    assert counts["PRESENT"] == 2
    assert counts["ABSENT"] == 1
    assert counts["LATE"] == 0


def test_attach_student_names_leaves_report_untouched(students):
    report = {
        "meta": {"class": "Three", "month": 9},
        "students": [{"id": 1, "name": "", "days": {"1": "P"}}, {"id": 9, "name": "Ghost"}],
    }
    named = attach_student_names(report, students)

    assert named["students"][0]["name"] == "Anika Rahman"
    assert named["students"][0]["days"] == {"1": "P"}
    assert named["students"][1]["name"] == "Ghost"
    assert named["meta"] == report["meta"]
    assert report["students"][0]["name"] == ""


def test_attach_student_names_without_report(students):
    assert attach_student_names(None, students) is None


def test_unknown_record_status_uses_default(students):
    records = [{"id": 7, "student": 1, "status": "holiday", "remarks": "trip"}]
    row = build_roster(students, records, default_status=AttendanceStatus.UNMARKED).rows[0]
    assert (row.status, row.remarks, row.attendance_record_id) == (AttendanceStatus.UNMARKED, "trip", "7")
