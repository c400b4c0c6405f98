"""Roster models: student assignments and student directory rows."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class AttemptStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


class StudentExamAssignment(BaseModel):
    """One student seated for one exam. Unique per (exam_id, student_id)."""
    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    exam_id: Optional[str] = None
    student_id: str
    seat_number: Optional[str] = None
    attendance_status: Optional[AttendanceStatus] = None
    attempt_status: Optional[AttemptStatus] = None
    has_incidents: bool = False
    notes: Optional[str] = None


class StudentSummary(BaseModel):
    """Student directory row shown in the roster tables."""
    model_config = ConfigDict(extra="ignore")

    id: str
    full_name: str = ""
    email: str = ""
    student_number: str = ""
    department_name: Optional[str] = None
    level: Optional[str] = None
    academic_year: Optional[str] = None
    status: str = "active"
