import itertools

import pytest
from fastapi.testclient import TestClient

from schooldesk.core.exceptions import RemoteAPIError
from schooldesk.main import app
from schooldesk.remote import get_remote_api


class FakeRemoteAPI:
    """In-memory stand-in for the school API, keyed the way the real one is."""

    def __init__(self):
        self.assignments = []
        self.timetable = []
        self.students = []
        # {(subject_id, date): [record, ...]}
        self.attendance = {}
        self.saved = []
        self.created = []
        self.updated = []
        self.deleted = []
        self.report = None
        self.fail = set()
        self._ids = itertools.count(100)

    def _check(self, name):
        if name in self.fail:
            raise RemoteAPIError(f"{name} unavailable", status_code=503)

    def list_assignments(self):
        self._check("list_assignments")
        return list(self.assignments)

    def create_assignment(self, payload):
        self._check("create_assignment")
        saved = dict(payload, id=next(self._ids))
        self.created.append(saved)
        return saved

    def update_assignment(self, assignment_id, payload):
        self._check("update_assignment")
        saved = dict(payload, id=assignment_id)
        self.updated.append(saved)
        return saved

    def delete_assignment(self, assignment_id):
        self._check("delete_assignment")
        self.deleted.append(assignment_id)

    def list_timetable(self, class_id=None, section_id=None):
        self._check("list_timetable")
        return list(self.timetable)

    def list_students(self, class_id, section_id):
        self._check("list_students")
        return list(self.students)

    def list_attendance(self, class_id, section_id, subject_id, date):
        self._check("list_attendance")
        return list(self.attendance.get((subject_id, date), []))

    def save_roster(self, payload):
        self._check("save_roster")
        self.saved.append(payload)
        subject_id = next(
            str(slot.get("subject")) for slot in self.timetable if str(slot["id"]) == str(payload.slot_id)
        )
        key = (subject_id, payload.date.isoformat())
        existing = {str(r["student"]): r for r in self.attendance.get(key, [])}
        for entry in payload.entries:
            record = existing.get(entry.student_id)
            if record is None:
                record = {"id": next(self._ids), "student": entry.student_id}
                existing[entry.student_id] = record
            record.update(status=entry.status.value, remarks=entry.remarks)
        self.attendance[key] = list(existing.values())
        return {"saved": len(payload.entries)}

    def monthly_report(self, class_id, section_id, month, year, subject_id=None):
        self._check("monthly_report")
        return self.report


@pytest.fixture
def remote():
    return FakeRemoteAPI()


@pytest.fixture
def client(remote):
    app.dependency_overrides[get_remote_api] = lambda: remote
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def students():
    return [
        {"id": 1, "full_name": "Anika Rahman"},
        {"id": 2, "full_name": "Bilal Hossain"},
        {"id": 3, "full_name": "Chaity Das"},
    ]
