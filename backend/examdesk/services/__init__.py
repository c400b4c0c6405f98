"""Services for authoring and managing exams."""

from .step_validator import WizardStep, validate_step, validate_all
from .question_editor import QuestionEditor, QuestionDraft
from .roster_assigner import RosterAssigner, RosterFilter
from .exam_wizard import ExamWizard
from .exam_catalog import ExamCatalogService

__all__ = [
    "WizardStep",
    "validate_step",
    "validate_all",
    "QuestionEditor",
    "QuestionDraft",
    "RosterAssigner",
    "RosterFilter",
    "ExamWizard",
    "ExamCatalogService",
]
