"""
Exam wizard - drives the five-step exam form and its persistence.

STEPS:
0. Basic info   (title, course, type, points)
1. Scheduling   (date, duration, session, center, room)
2. Questions    (QuestionEditor)
3. Students     (RosterAssigner)
4. Finalize     (save as draft or publish)

Next only advances when the current step validates; Back is always allowed.
Save and publish run from the final step and re-validate every step first.

PERSISTENCE (strictly in this order, each step awaited):
a. upsert the exam header with status=draft (insert on first save)
b. replace the exam's questions
c. replace the exam's roster
d. publish only: flip the header to status=published

A gateway failure stops the sequence where it is. Steps already applied are
kept (the header may be newer than its children); the wizard stays on its
step with an error message and the user can retry.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter

from ..errors import (
    ExamNotEditableError,
    ExamNotFoundError,
    GatewayError,
    NotAProfessorError,
    WizardStateError,
)
from ..gateway import (
    ASCENDING,
    COURSES,
    DESCENDING,
    EXAM_CENTERS,
    EXAM_QUESTIONS,
    EXAM_SESSIONS,
    EXAMS,
    STUDENT_EXAMS,
    Gateway,
    Query,
)
from ..models import (
    AuthContext,
    Exam,
    ExamAggregate,
    ExamStatus,
    Question,
    StudentExamAssignment,
    WizardPolicy,
)
from ..utils import utc_now_iso
from .question_editor import QuestionEditor
from .roster_assigner import RosterAssigner
from .step_validator import WizardStep, validate_all, validate_step

logger = logging.getLogger(__name__)

EXAMS_LIST_PATH = "/professor/exams"

# Header fields the professor may edit; identity, ownership and status are managed here
EDITABLE_FIELDS = {
    "title",
    "description",
    "course_id",
    "exam_session_id",
    "exam_center_id",
    "date",
    "duration",
    "type",
    "room",
    "total_points",
    "passing_grade",
}

_question_adapter = TypeAdapter(Question)


class ExamWizard:
    """One exam authoring session (create or edit)."""

    def __init__(
        self,
        gateway: Gateway,
        auth: AuthContext,
        policy: WizardPolicy,
        exam_id: Optional[str] = None,
        redirect_delay_ms: int = 2000,
        picker_limit: int = 100
    ):
        self.wizard_id = uuid.uuid4().hex
        self.gateway = gateway
        self.auth = auth
        self.policy = policy
        self.exam_id = exam_id
        self.redirect_delay_ms = redirect_delay_ms

        self.aggregate = ExamAggregate()
        self.question_editor = QuestionEditor(self.aggregate)
        self.roster_assigner = RosterAssigner(self.aggregate, gateway, policy, picker_limit=picker_limit)

        self.step = WizardStep.BASIC_INFO
        self.loading = False
        self.saving = False
        self.publishing = False

        # Reference data for the select boxes
        self.courses: List[Dict[str, Any]] = []
        self.sessions: List[Dict[str, Any]] = []
        self.centers: List[Dict[str, Any]] = []

        self.validation_errors: Dict[int, Dict[str, str]] = {}
        self.error: Optional[str] = None
        self.success_message: Optional[str] = None
        self.redirect_to: Optional[str] = None

        self.last_activity = datetime.utcnow()

    @property
    def is_editing(self) -> bool:
        return self.exam_id is not None

    @property
    def exam(self) -> Exam:
        return self.aggregate.exam

    def touch(self) -> None:
        self.last_activity = datetime.utcnow()

    # ============ LOADING ============

    async def load(self) -> None:
        """
        Load reference data and, in edit mode, the exam with its questions and roster.

        Raises:
            NotAProfessorError: the caller has no professor profile
            ExamNotFoundError / ExamNotEditableError: edit mode on a missing,
                foreign or non-draft exam
            GatewayError: a fetch failed (also recorded in `error`)
        """
        if not self.auth.is_professor:
            raise NotAProfessorError("Only professors can create or edit exams")

        self.loading = True
        self.error = None
        try:
            self.courses = await self.gateway.fetch(COURSES, Query(
                select=["id", "name", "code"],
                order_by=[("name", ASCENDING)]
            ))
            self.sessions = await self.gateway.fetch(EXAM_SESSIONS, Query(
                order_by=[("academic_year", DESCENDING), ("semester", ASCENDING)]
            ))
            self.centers = await self.gateway.fetch(EXAM_CENTERS, Query(
                order_by=[("name", ASCENDING)]
            ))

            if self.is_editing:
                await self._load_exam(self.exam_id)
            else:
                self.exam.professor_id = self.auth.professor_id
        except GatewayError as e:
            logger.error(f"Error loading exam wizard data: {e}")
            self.error = "Could not load the exam form data."
            raise
        finally:
            self.loading = False

    async def _load_exam(self, exam_id: str) -> None:
        row = await self.gateway.fetch_one(EXAMS, {"id": exam_id})
        if not row:
            raise ExamNotFoundError(f"Exam '{exam_id}' not found")

        exam = Exam(**row)
        if exam.professor_id != self.auth.professor_id:
            raise ExamNotEditableError("This exam belongs to another professor")
        if exam.status != ExamStatus.DRAFT.value:
            raise ExamNotEditableError(f"Only draft exams can be edited (status: {exam.status})")

        question_rows = await self.gateway.fetch(EXAM_QUESTIONS, Query(
            filters={"exam_id": exam_id},
            order_by=[("question_number", ASCENDING)]
        ))
        roster_rows = await self.gateway.fetch(STUDENT_EXAMS, Query(filters={"exam_id": exam_id}))

        self.aggregate.exam = exam
        self.aggregate.questions = [_question_adapter.validate_python(r) for r in question_rows]
        self.aggregate.roster = [StudentExamAssignment(**r) for r in roster_rows]
        logger.info(
            f"Loaded exam {exam_id} for editing: "
            f"{len(question_rows)} questions, {len(roster_rows)} students"
        )

    # ============ EDITING ============

    def ensure_editable(self) -> None:
        """Refuse edits once the exam left the draft status or while it is being saved."""
        if not self.aggregate.is_draft():
            raise ExamNotEditableError("The exam is no longer a draft")
        if self.saving or self.publishing:
            raise WizardStateError("The exam is being saved")

    def set_field(self, field: str, value) -> None:
        """Change one header field and drop the stale error shown for it."""
        self.ensure_editable()
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Field '{field}' cannot be edited")

        if field == "date":
            if isinstance(value, datetime):
                self.aggregate.set_date(value)
            elif value:
                self.aggregate.set("date", value)
        else:
            self.aggregate.set(field, value)

        step_errors = self.validation_errors.get(int(self.step))
        if step_errors:
            step_errors.pop(field, None)

    def set_date(self, picked: Optional[datetime]) -> None:
        self.set_field("date", picked)

    def update_fields(self, changes: Dict[str, Any]) -> None:
        for field, value in changes.items():
            self.set_field(field, value)

    # ============ NAVIGATION ============

    def next(self) -> bool:
        """Advance one step if the current step validates. Returns whether the step changed."""
        if self.step == WizardStep.FINALIZE:
            return False

        errors = validate_step(self.step, self.aggregate, self.policy)
        if errors:
            self.validation_errors[int(self.step)] = errors
            return False

        self.validation_errors.pop(int(self.step), None)
        self.step = WizardStep(self.step + 1)
        return True

    def back(self) -> bool:
        if self.step == WizardStep.BASIC_INFO:
            return False
        self.step = WizardStep(self.step - 1)
        return True

    # ============ SAVE / PUBLISH ============

    async def save_draft(self) -> bool:
        return await self._save(publish=False)

    async def publish(self) -> bool:
        return await self._save(publish=True)

    async def _save(self, publish: bool) -> bool:
        if self.step != WizardStep.FINALIZE:
            raise WizardStateError("Saving and publishing are only available on the final step")
        if self.saving or self.publishing:
            raise WizardStateError("The exam is already being saved")
        self.ensure_editable()

        self.error = None
        self.success_message = None

        failures = validate_all(self.aggregate, self.policy)
        self.validation_errors = {int(step): errors for step, errors in failures.items()}
        if failures:
            action = "publishing" if publish else "saving"
            self.error = f"Some steps have errors. Fix them before {action} the exam."
            return False

        created = self.exam.id is None
        if publish:
            self.publishing = True
        else:
            self.saving = True
        try:
            await self._persist(publish)
        except GatewayError as e:
            logger.error(f"Error saving exam {self.exam.id or '(new)'}: {e}")
            self.error = f"The exam could not be saved: {e}"
            return False
        finally:
            self.saving = False
            self.publishing = False

        verb = "created" if created else "updated"
        self.success_message = f"The exam was {verb} successfully" + (" and published." if publish else ".")
        self.redirect_to = EXAMS_LIST_PATH
        logger.info(f"Exam {self.exam.id} {verb} (status: {self.exam.status})")
        return True

    async def _persist(self, publish: bool) -> None:
        now = utc_now_iso()
        exam = self.exam

        header = exam.model_dump(exclude={"id"})
        header["status"] = ExamStatus.DRAFT.value
        header["updated_at"] = now

        # a. header
        if exam.id is None:
            header["created_at"] = now
            rows = await self.gateway.insert(EXAMS, header)
            exam.id = rows[0]["id"]
            exam.created_at = now
            self.exam_id = exam.id
        else:
            await self.gateway.update(EXAMS, exam.id, header)
        exam.updated_at = now

        # b. questions
        await self.gateway.replace_set(
            EXAM_QUESTIONS, "exam_id", exam.id,
            [q.model_dump() for q in self.aggregate.questions]
        )

        # c. roster
        for assignment in self.aggregate.roster:
            assignment.exam_id = exam.id
        await self.gateway.replace_set(
            STUDENT_EXAMS, "exam_id", exam.id,
            [a.model_dump() for a in self.aggregate.roster]
        )

        # d. publish once the children are in place
        if publish:
            await self.gateway.update(EXAMS, exam.id, {
                "status": ExamStatus.PUBLISHED.value,
                "updated_at": now
            })
            exam.status = ExamStatus.PUBLISHED.value

    # ============ STATE ============

    def snapshot(self) -> Dict[str, Any]:
        return {
            "wizard_id": self.wizard_id,
            "mode": "edit" if self.is_editing else "create",
            "step": int(self.step),
            "step_name": self.step.name.lower(),
            "steps": [s.name.lower() for s in WizardStep],
            "loading": self.loading,
            "saving": self.saving,
            "publishing": self.publishing,
            "policy": self.policy.model_dump(),
            "exam": self.exam.model_dump(),
            "questions": [q.model_dump() for q in self.aggregate.questions],
            "question_points": self.aggregate.question_points(),
            "question_editor": self.question_editor.state(),
            "roster": self.roster_assigner.roster_view(),
            "roster_error": self.roster_assigner.error,
            "reference": {
                "courses": self.courses,
                "sessions": self.sessions,
                "centers": self.centers
            },
            "validation_errors": {str(k): v for k, v in self.validation_errors.items()},
            "error": self.error,
            "success_message": self.success_message,
            "redirect_to": self.redirect_to,
            "redirect_after_ms": self.redirect_delay_ms if self.redirect_to else None
        }
