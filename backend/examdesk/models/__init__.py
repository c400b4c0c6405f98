"""Pydantic models for the ExamDesk application"""

from .question import (
    QuestionOption,
    MultipleChoiceQuestion,
    OpenEndedQuestion,
    Question,
    MULTIPLE_CHOICE,
    SHORT_ANSWER,
    ESSAY,
    QUESTION_TYPES,
)
from .roster import (
    AttendanceStatus,
    AttemptStatus,
    StudentExamAssignment,
    StudentSummary,
)
from .exam import ExamStatus, ExamType, Exam, ExamAggregate
from .auth import AuthContext
from .policy import WizardPolicy, STRICT, LENIENT
from .requests import (
    WizardStart,
    ExamFieldsUpdate,
    QuestionDraftUpdate,
    OptionTextUpdate,
    StudentSelection,
)

__all__ = [
    # Question models
    "QuestionOption",
    "MultipleChoiceQuestion",
    "OpenEndedQuestion",
    "Question",
    "MULTIPLE_CHOICE",
    "SHORT_ANSWER",
    "ESSAY",
    "QUESTION_TYPES",

    # Roster models
    "AttendanceStatus",
    "AttemptStatus",
    "StudentExamAssignment",
    "StudentSummary",

    # Exam models
    "ExamStatus",
    "ExamType",
    "Exam",
    "ExamAggregate",

    # Auth / policy
    "AuthContext",
    "WizardPolicy",
    "STRICT",
    "LENIENT",

    # Request bodies
    "WizardStart",
    "ExamFieldsUpdate",
    "QuestionDraftUpdate",
    "OptionTextUpdate",
    "StudentSelection",
]
