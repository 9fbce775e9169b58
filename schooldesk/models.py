import datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, field_validator


class Weekday(str, Enum):
    MONDAY = "Mon"
    TUESDAY = "Tue"
    WEDNESDAY = "Wed"
    THURSDAY = "Thu"
    FRIDAY = "Fri"
    SATURDAY = "Sat"
    SUNDAY = "Sun"

class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    EXCUSED = "EXCUSED"
    UNMARKED = "UNMARKED"


# Statuses the remote API accepts in a save payload
PERSISTED_STATUSES = (
    AttendanceStatus.PRESENT,
    AttendanceStatus.ABSENT,
    AttendanceStatus.LATE,
    AttendanceStatus.EXCUSED,
)


####### timetable ##########
class SlotAssignment(BaseModel):
    id: Optional[str] = None
    day: Optional[Weekday] = None
    period: str = ""
    class_id: str = ""
    section_id: str = ""
    subject_id: str = ""
    teacher_id: str = ""
    room: str = ""

    @field_validator("period", "room", "class_id", "section_id", "subject_id", "teacher_id", mode="before")
    @classmethod
    def strip_text(cls, v):
        if v is None:
            return ""
        return str(v).strip()

    @field_validator("id", mode="before")
    @classmethod
    def id_as_text(cls, v):
        if v is None or v == "":
            return None
        return str(v)

    @property
    def slot_key(self) -> Tuple[Optional[Weekday], str]:
        return (self.day, self.period)

    @property
    def class_section(self) -> Tuple[str, str]:
        return (self.class_id, self.section_id)

    def __repr__(self):
        return f"<SlotAssignment {self.day} {self.period}: class {self.class_id}-{self.section_id}>"


class PeriodOption(BaseModel):
    id: str
    label: str


class SubjectOption(BaseModel):
    id: str
    name: str = ""


####### roster ##########
class Student(BaseModel):
    id: str
    full_name: str = ""
    class_id: Optional[str] = None
    section_id: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def id_as_text(cls, v):
        return str(v)


class AttendanceRecord(BaseModel):
    """One persisted attendance row as the remote API returns it."""
    id: Optional[str] = None
    student: str
    status: AttendanceStatus = AttendanceStatus.PRESENT
    remarks: str = ""

    @field_validator("id", "student", mode="before")
    @classmethod
    def id_as_text(cls, v):
        if v is None:
            return None
        return str(v)

    @field_validator("status", mode="before")
    @classmethod
    def upper_status(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("remarks", mode="before")
    @classmethod
    def remarks_text(cls, v):
        return v or ""


class AttendanceRow(BaseModel):
    student_id: str
    student_name: str = ""
    status: AttendanceStatus = AttendanceStatus.PRESENT
    remarks: str = ""
    attendance_record_id: Optional[str] = None

    @field_validator("remarks", mode="before")
    @classmethod
    def remarks_text(cls, v):
        return v or ""


class Roster(BaseModel):
    date: Optional[datetime.date] = None
    slot_id: Optional[int] = None
    rows: List[AttendanceRow] = []


####### bulk save ##########
class SaveEntry(BaseModel):
    student_id: str
    status: AttendanceStatus
    remarks: str = ""


class SavePayload(BaseModel):
    slot_id: int
    date: datetime.date
    entries: List[SaveEntry]

    def to_remote(self) -> dict:
        """Body of the remote bulk upsert (``attendance/roster/``)."""
        return {
            "timetable": self.slot_id,
            "date": self.date.isoformat(),
            "rows": [
                {"student": entry.student_id, "status": entry.status.value, "remarks": entry.remarks}
                for entry in self.entries
            ],
        }
