"""Request bodies accepted by the wizard routes."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict

from .exam import ExamType


class WizardStart(BaseModel):
    """Open a wizard. With exam_id the existing draft is loaded for editing."""
    exam_id: Optional[str] = None


class ExamFieldsUpdate(BaseModel):
    """Partial update of the exam header; only fields sent by the client are applied."""
    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    title: Optional[str] = None
    description: Optional[str] = None
    course_id: Optional[str] = None
    exam_session_id: Optional[str] = None
    exam_center_id: Optional[str] = None
    date: Optional[datetime] = None
    duration: Optional[int] = None
    type: Optional[ExamType] = None
    room: Optional[str] = None
    total_points: Optional[float] = None
    passing_grade: Optional[float] = None


class QuestionDraftUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    question_text: Optional[str] = None
    question_type: Optional[Literal["multiple_choice", "short_answer", "essay"]] = None
    points: Optional[int] = None
    rubric: Optional[str] = None
    correct_answer: Optional[int] = None


class OptionTextUpdate(BaseModel):
    text: str


class StudentSelection(BaseModel):
    student_ids: List[str]
