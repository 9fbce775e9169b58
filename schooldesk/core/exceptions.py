from typing import List, Optional


class SchoolDeskError(Exception):
    """Base class for errors raised by the timetable and roster core."""


class ValidationFailure(SchoolDeskError):
    """One or more slot rules are violated or a required field is missing."""

    def __init__(self, messages: List[str]):
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))


class AmbiguousSlot(SchoolDeskError):
    """A save request does not resolve to exactly one timetable period."""

    def __init__(self, option_count: int):
        self.option_count = option_count
        if option_count == 0:
            message = "No period for this selection"
        else:
            message = "Please select the period/time before saving."
        super().__init__(message)


class StaleRosterState(SchoolDeskError):
    """Rows whose saved record changed between two reads of the roster."""

    def __init__(self, student_ids: Optional[List[str]] = None, detail=None):
        self.student_ids = list(student_ids or [])
        self.detail = detail
        super().__init__("Attendance changed on the server, reload the roster before saving again")


class RemoteAPIError(SchoolDeskError):
    """The remote school API could not be reached or answered with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None, detail=None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)
