"""
Exam wizard routes.

A wizard is opened with POST /api/exam-wizards and then driven step by step.
Every endpoint answers with the wizard state; actions add an "ok" flag.

Endpoints:
- POST   /api/exam-wizards
- GET    /api/exam-wizards/{wizard_id}
- DELETE /api/exam-wizards/{wizard_id}
- PATCH  /api/exam-wizards/{wizard_id}/exam
- POST   /api/exam-wizards/{wizard_id}/next | /back
- POST   /api/exam-wizards/{wizard_id}/questions                     (open a new draft)
- PATCH  /api/exam-wizards/{wizard_id}/questions/draft
- POST   /api/exam-wizards/{wizard_id}/questions/draft/options
- PATCH  /api/exam-wizards/{wizard_id}/questions/draft/options/{option_id}
- DELETE /api/exam-wizards/{wizard_id}/questions/draft/options/{option_id}
- POST   /api/exam-wizards/{wizard_id}/questions/draft/save
- DELETE /api/exam-wizards/{wizard_id}/questions/draft
- POST   /api/exam-wizards/{wizard_id}/questions/{index}/edit | /move-up | /move-down
- DELETE /api/exam-wizards/{wizard_id}/questions/{index}
- GET    /api/exam-wizards/{wizard_id}/students/course
- GET    /api/exam-wizards/{wizard_id}/students/directory
- POST   /api/exam-wizards/{wizard_id}/students/assign-course
- POST   /api/exam-wizards/{wizard_id}/students
- POST   /api/exam-wizards/{wizard_id}/students/seat-numbers
- DELETE /api/exam-wizards/{wizard_id}/students/{student_id}
- DELETE /api/exam-wizards/{wizard_id}/students
- POST   /api/exam-wizards/{wizard_id}/save-draft | /publish
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..gateway import Gateway
from ..models import (
    AuthContext,
    ExamFieldsUpdate,
    OptionTextUpdate,
    QuestionDraftUpdate,
    StudentSelection,
    WizardPolicy,
    WizardStart,
)
from ..registry import WizardRegistry
from ..services import ExamWizard, RosterFilter
from .auth import create_auth_dependency, to_http_error

logger = logging.getLogger(__name__)


def create_wizard_routes(gateway: Gateway, registry: WizardRegistry, settings) -> APIRouter:
    """Create exam wizard routes with the gateway and the wizard registry."""

    router = APIRouter(prefix="/api/exam-wizards", tags=["exam-wizards"])
    policy = WizardPolicy.named(settings.WIZARD_POLICY)
    get_current_user = create_auth_dependency(gateway)

    def _action(wizard: ExamWizard, ok: bool) -> dict:
        return {"ok": ok, **wizard.snapshot()}

    async def _ensure_course_students(wizard: ExamWizard) -> None:
        assigner = wizard.roster_assigner
        course_id = wizard.exam.course_id
        if assigner.loaded_course_id != course_id:
            if not await assigner.load_course_students(course_id):
                raise HTTPException(status_code=502, detail=assigner.error)

    # ============ LIFECYCLE ============

    @router.post("")
    async def open_wizard(body: WizardStart, user: AuthContext = Depends(get_current_user)):
        """Open a wizard to create an exam, or to edit a draft when exam_id is given."""
        try:
            wizard = ExamWizard(
                gateway,
                user,
                policy,
                exam_id=body.exam_id,
                redirect_delay_ms=settings.REDIRECT_DELAY_MS,
                picker_limit=settings.STUDENT_PICKER_LIMIT
            )
            await wizard.load()
            registry.add(wizard)
            logger.info(f"Opened exam wizard {wizard.wizard_id} for {user.user_id}")
            return wizard.snapshot()
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.get("/{wizard_id}")
    async def get_wizard(wizard_id: str, user: AuthContext = Depends(get_current_user)):
        try:
            return registry.get(wizard_id, user).snapshot()
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.delete("/{wizard_id}")
    async def close_wizard(wizard_id: str, user: AuthContext = Depends(get_current_user)):
        """Abandon the wizard without saving."""
        try:
            registry.discard(wizard_id, user)
            return {"message": "Wizard closed"}
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    # ============ HEADER & NAVIGATION ============

    @router.patch("/{wizard_id}/exam")
    async def update_exam_fields(
        wizard_id: str,
        body: ExamFieldsUpdate,
        user: AuthContext = Depends(get_current_user)
    ):
        try:
            wizard = registry.get(wizard_id, user)
            wizard.update_fields(body.model_dump(exclude_unset=True))
            return wizard.snapshot()
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.post("/{wizard_id}/next")
    async def next_step(wizard_id: str, user: AuthContext = Depends(get_current_user)):
        try:
            wizard = registry.get(wizard_id, user)
            return _action(wizard, wizard.next())
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.post("/{wizard_id}/back")
    async def previous_step(wizard_id: str, user: AuthContext = Depends(get_current_user)):
        try:
            wizard = registry.get(wizard_id, user)
            return _action(wizard, wizard.back())
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    # ============ QUESTIONS ============

    @router.post("/{wizard_id}/questions")
    async def add_question(wizard_id: str, user: AuthContext = Depends(get_current_user)):
        try:
            wizard = registry.get(wizard_id, user)
            wizard.ensure_editable()
            wizard.question_editor.add_question()
            return wizard.snapshot()
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.patch("/{wizard_id}/questions/draft")
    async def update_question_draft(
        wizard_id: str,
        body: QuestionDraftUpdate,
        user: AuthContext = Depends(get_current_user)
    ):
        try:
            wizard = registry.get(wizard_id, user)
            wizard.ensure_editable()
            wizard.question_editor.update_draft(**body.model_dump(exclude_unset=True))
            return wizard.snapshot()
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.post("/{wizard_id}/questions/draft/options")
    async def add_option(wizard_id: str, user: AuthContext = Depends(get_current_user)):
        try:
            wizard = registry.get(wizard_id, user)
            wizard.ensure_editable()
            wizard.question_editor.add_option()
            return wizard.snapshot()
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.patch("/{wizard_id}/questions/draft/options/{option_id}")
    async def set_option_text(
        wizard_id: str,
        option_id: int,
        body: OptionTextUpdate,
        user: AuthContext = Depends(get_current_user)
    ):
        try:
            wizard = registry.get(wizard_id, user)
            wizard.ensure_editable()
            wizard.question_editor.set_option_text(option_id, body.text)
            return wizard.snapshot()
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.delete("/{wizard_id}/questions/draft/options/{option_id}")
    async def remove_option(wizard_id: str, option_id: int, user: AuthContext = Depends(get_current_user)):
        try:
            wizard = registry.get(wizard_id, user)
            wizard.ensure_editable()
            return _action(wizard, wizard.question_editor.remove_option(option_id))
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.post("/{wizard_id}/questions/draft/save")
    async def save_question(wizard_id: str, user: AuthContext = Depends(get_current_user)):
        """Write the draft into the question list, or report its errors."""
        try:
            wizard = registry.get(wizard_id, user)
            wizard.ensure_editable()
            total = wizard.question_editor.save_question()
            return _action(wizard, total is not None)
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.delete("/{wizard_id}/questions/draft")
    async def cancel_question_draft(wizard_id: str, user: AuthContext = Depends(get_current_user)):
        try:
            wizard = registry.get(wizard_id, user)
            wizard.ensure_editable()
            wizard.question_editor.cancel()
            return wizard.snapshot()
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.post("/{wizard_id}/questions/{index}/edit")
    async def edit_question(wizard_id: str, index: int, user: AuthContext = Depends(get_current_user)):
        try:
            wizard = registry.get(wizard_id, user)
            wizard.ensure_editable()
            wizard.question_editor.edit_question(index)
            return wizard.snapshot()
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.post("/{wizard_id}/questions/{index}/move-up")
    async def move_question_up(wizard_id: str, index: int, user: AuthContext = Depends(get_current_user)):
        try:
            wizard = registry.get(wizard_id, user)
            wizard.ensure_editable()
            return _action(wizard, wizard.question_editor.move_up(index))
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.post("/{wizard_id}/questions/{index}/move-down")
    async def move_question_down(wizard_id: str, index: int, user: AuthContext = Depends(get_current_user)):
        try:
            wizard = registry.get(wizard_id, user)
            wizard.ensure_editable()
            return _action(wizard, wizard.question_editor.move_down(index))
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.delete("/{wizard_id}/questions/{index}")
    async def delete_question(wizard_id: str, index: int, user: AuthContext = Depends(get_current_user)):
        try:
            wizard = registry.get(wizard_id, user)
            wizard.ensure_editable()
            wizard.question_editor.delete_question(index)
            return wizard.snapshot()
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    # ============ STUDENTS ============

    @router.get("/{wizard_id}/students/course")
    async def course_students(
        wizard_id: str,
        search: str = "",
        status: RosterFilter = RosterFilter.ALL,
        user: AuthContext = Depends(get_current_user)
    ):
        """Students enrolled in the exam's course, filtered for the roster table."""
        try:
            wizard = registry.get(wizard_id, user)
            await _ensure_course_students(wizard)
            return {"students": wizard.roster_assigner.course_view(search, status)}
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.get("/{wizard_id}/students/directory")
    async def student_directory(wizard_id: str, search: str = "", user: AuthContext = Depends(get_current_user)):
        """All active students for manual assignment, capped for display."""
        try:
            wizard = registry.get(wizard_id, user)
            assigner = wizard.roster_assigner
            if not assigner.all_students_loaded:
                if not await assigner.load_all_students():
                    raise HTTPException(status_code=502, detail=assigner.error)
            return assigner.picker(search)
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.post("/{wizard_id}/students/assign-course")
    async def assign_course_students(wizard_id: str, user: AuthContext = Depends(get_current_user)):
        try:
            wizard = registry.get(wizard_id, user)
            wizard.ensure_editable()
            await _ensure_course_students(wizard)
            added = wizard.roster_assigner.assign_all_course_students()
            return {"added": added, **_action(wizard, True)}
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.post("/{wizard_id}/students")
    async def add_students(wizard_id: str, body: StudentSelection, user: AuthContext = Depends(get_current_user)):
        try:
            wizard = registry.get(wizard_id, user)
            wizard.ensure_editable()
            added = wizard.roster_assigner.add_selected(body.student_ids)
            return {"added": added, **_action(wizard, True)}
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.post("/{wizard_id}/students/seat-numbers")
    async def generate_seat_numbers(wizard_id: str, user: AuthContext = Depends(get_current_user)):
        try:
            wizard = registry.get(wizard_id, user)
            wizard.ensure_editable()
            wizard.roster_assigner.generate_seat_numbers()
            return wizard.snapshot()
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.delete("/{wizard_id}/students/{student_id}")
    async def remove_student(wizard_id: str, student_id: str, user: AuthContext = Depends(get_current_user)):
        try:
            wizard = registry.get(wizard_id, user)
            wizard.ensure_editable()
            return _action(wizard, wizard.roster_assigner.remove_student(student_id))
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.delete("/{wizard_id}/students")
    async def remove_all_students(wizard_id: str, user: AuthContext = Depends(get_current_user)):
        try:
            wizard = registry.get(wizard_id, user)
            wizard.ensure_editable()
            wizard.roster_assigner.remove_all()
            return wizard.snapshot()
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    # ============ SAVE / PUBLISH ============

    @router.post("/{wizard_id}/save-draft")
    async def save_draft(wizard_id: str, user: AuthContext = Depends(get_current_user)):
        try:
            wizard = registry.get(wizard_id, user)
            return _action(wizard, await wizard.save_draft())
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.post("/{wizard_id}/publish")
    async def publish(wizard_id: str, user: AuthContext = Depends(get_current_user)):
        try:
            wizard = registry.get(wizard_id, user)
            return _action(wizard, await wizard.publish())
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    return router
