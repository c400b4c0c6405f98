"""Exam-related Pydantic models"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..utils import utc_now_iso
from .question import Question
from .roster import StudentExamAssignment


class ExamStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    IN_PROGRESS = "in_progress"
    GRADING = "grading"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ExamType(str, Enum):
    MIDTERM = "midterm"
    FINAL = "final"
    QUIZ = "quiz"
    PROJECT = "project"
    ORAL = "oral"
    PRACTICAL = "practical"


class Exam(BaseModel):
    """Exam header. Holds whatever the professor typed; validity is decided by the step validator."""
    model_config = ConfigDict(extra="ignore", use_enum_values=True, validate_default=True)

    id: Optional[str] = None
    title: str = ""
    description: Optional[str] = ""
    course_id: Optional[str] = None
    professor_id: Optional[str] = None
    exam_session_id: Optional[str] = None
    exam_center_id: Optional[str] = None
    date: Optional[str] = Field(default_factory=utc_now_iso)
    duration: int = 120  # minutes
    type: Optional[ExamType] = None
    room: Optional[str] = ""
    total_points: float = 20
    passing_grade: float = 10
    status: ExamStatus = ExamStatus.DRAFT
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ExamAggregate(BaseModel):
    """Working copy of one exam during authoring: header, ordered questions, roster."""
    exam: Exam = Field(default_factory=Exam)
    questions: List[Question] = []
    roster: List[StudentExamAssignment] = []

    def set(self, field: str, value) -> None:
        if field not in Exam.model_fields:
            raise ValueError(f"Unknown exam field '{field}'")
        setattr(self.exam, field, value)

    def set_date(self, picked: Optional[datetime]) -> None:
        """Store a picked date as an ISO-8601 string. An empty pick keeps the current date."""
        if picked:
            self.exam.date = picked.isoformat()

    def question_points(self) -> int:
        return sum(q.points for q in self.questions)

    def is_draft(self) -> bool:
        return self.exam.status == ExamStatus.DRAFT.value
