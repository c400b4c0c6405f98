"""
Question editor - add, edit, reorder and delete the exam's questions.

Questions are edited one at a time through a draft (the open edit form). The
draft is only written into the question list by save_question(), after local
validation. Everything here is synchronous and in-memory; nothing reaches the
gateway until the wizard saves the exam.
"""

import logging
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel

from ..errors import WizardStateError
from ..models import (
    MULTIPLE_CHOICE,
    ExamAggregate,
    MultipleChoiceQuestion,
    OpenEndedQuestion,
    QuestionOption,
)
from .step_validator import MIN_OPTIONS

logger = logging.getLogger(__name__)

DEFAULT_OPTION_COUNT = 4
REQUIRED_DRAFT_FIELDS = {"question_text", "question_type", "points"}


class QuestionDraft(BaseModel):
    """Fields of the question edit form."""
    question_number: int
    question_text: str = ""
    question_type: Literal["multiple_choice", "short_answer", "essay"] = MULTIPLE_CHOICE
    points: int = 1
    correct_answer: Optional[int] = None
    rubric: Optional[str] = ""


def _blank_options() -> List[QuestionOption]:
    return [QuestionOption(id=i, text="") for i in range(1, DEFAULT_OPTION_COUNT + 1)]


class QuestionEditor:
    """Owns the question list of one exam aggregate."""

    def __init__(self, aggregate: ExamAggregate):
        self.aggregate = aggregate
        self.draft: Optional[QuestionDraft] = None
        self.options: List[QuestionOption] = []
        self.next_option_id = 1
        self.errors: Dict[str, str] = {}

    @property
    def questions(self):
        return self.aggregate.questions

    @property
    def total_points(self) -> int:
        return sum(q.points for q in self.questions)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.questions):
            raise IndexError(f"No question at position {index}")

    def _require_draft(self) -> QuestionDraft:
        if self.draft is None:
            raise WizardStateError("No question is being edited")
        return self.draft

    def _require_no_draft(self) -> None:
        # The question list is frozen while a draft is open
        if self.draft is not None:
            raise WizardStateError("Save or cancel the open question first")

    def _reset_options(self) -> None:
        self.options = _blank_options()
        self.next_option_id = DEFAULT_OPTION_COUNT + 1

    # ============ DRAFT LIFECYCLE ============

    def add_question(self) -> QuestionDraft:
        """Open a blank multiple-choice draft numbered after the last question."""
        self.draft = QuestionDraft(question_number=len(self.questions) + 1)
        self._reset_options()
        self.errors = {}
        return self.draft

    def edit_question(self, index: int) -> QuestionDraft:
        """Open a draft populated from the question at `index`."""
        self._require_no_draft()
        self._check_index(index)
        question = self.questions[index]

        if question.question_type == MULTIPLE_CHOICE:
            self.draft = QuestionDraft(
                question_number=question.question_number,
                question_text=question.question_text,
                question_type=question.question_type,
                points=question.points,
                correct_answer=question.correct_answer
            )
            if question.options:
                self.options = [o.model_copy() for o in question.options]
                self.next_option_id = max(o.id for o in question.options) + 1
            else:
                self._reset_options()
        else:
            self.draft = QuestionDraft(
                question_number=question.question_number,
                question_text=question.question_text,
                question_type=question.question_type,
                points=question.points,
                rubric=question.rubric
            )
            self._reset_options()

        self.errors = {}
        return self.draft

    def update_draft(self, **changes) -> QuestionDraft:
        draft = self._require_draft()
        for field, value in changes.items():
            if field not in QuestionDraft.model_fields or field == "question_number":
                raise ValueError(f"Cannot set '{field}' on a question")
            if value is None and field in REQUIRED_DRAFT_FIELDS:
                raise ValueError(f"'{field}' cannot be empty")
            setattr(draft, field, value)
            self.errors.pop(field, None)
        return draft

    def cancel(self) -> None:
        self.draft = None
        self.errors = {}

    # ============ OPTIONS ============

    def add_option(self) -> QuestionOption:
        self._require_draft()
        option = QuestionOption(id=self.next_option_id, text="")
        self.options.append(option)
        self.next_option_id += 1
        return option

    def set_option_text(self, option_id: int, text: str) -> None:
        self._require_draft()
        for option in self.options:
            if option.id == option_id:
                option.text = text
                return
        raise KeyError(f"No option {option_id}")

    def remove_option(self, option_id: int) -> bool:
        """Remove an option. Refused when only the minimum number of options remains."""
        draft = self._require_draft()
        if not any(o.id == option_id for o in self.options):
            raise KeyError(f"No option {option_id}")
        if len(self.options) <= MIN_OPTIONS:
            return False

        self.options = [o for o in self.options if o.id != option_id]
        if draft.correct_answer == option_id:
            draft.correct_answer = None
        return True

    # ============ SAVE ============

    def validate_draft(self) -> Dict[str, str]:
        draft = self._require_draft()
        errors: Dict[str, str] = {}

        if not draft.question_text.strip():
            errors["question_text"] = "Question text is required"
        if draft.points <= 0:
            errors["points"] = "Points must be greater than 0"

        if draft.question_type == MULTIPLE_CHOICE:
            if any(not o.text.strip() for o in self.options):
                errors["options"] = "Every option needs a text"
            if len(self.options) < MIN_OPTIONS:
                errors["options_count"] = f"At least {MIN_OPTIONS} options are required"
            if draft.correct_answer is None:
                errors["correct_answer"] = "Select the correct answer"
            elif draft.correct_answer not in {o.id for o in self.options}:
                errors["correct_answer"] = "The correct answer must be one of the options"

        self.errors = errors
        return errors

    def save_question(self) -> Optional[int]:
        """
        Validate the draft and write it into the question list.

        Returns:
            The new running total of question points, or None when the draft
            is invalid (the draft stays open with `errors` filled in).
        """
        draft = self._require_draft()
        if self.validate_draft():
            return None

        if draft.question_type == MULTIPLE_CHOICE:
            question = MultipleChoiceQuestion(
                question_number=draft.question_number,
                question_text=draft.question_text,
                points=draft.points,
                options=[o.model_copy() for o in self.options],
                correct_answer=draft.correct_answer
            )
        else:
            question = OpenEndedQuestion(
                question_number=draft.question_number,
                question_text=draft.question_text,
                question_type=draft.question_type,
                points=draft.points,
                rubric=draft.rubric
            )

        questions = [q for q in self.questions if q.question_number != question.question_number]
        questions.append(question)
        questions.sort(key=lambda q: q.question_number)
        self.aggregate.questions = questions

        self.cancel()
        total = self.total_points
        logger.debug(f"Saved question {question.question_number}, running total {total}")
        return total

    # ============ LIST OPERATIONS ============

    def delete_question(self, index: int) -> int:
        """Remove a question and renumber the rest 1..N. Returns the running total."""
        self._require_no_draft()
        self._check_index(index)
        remaining = [q for i, q in enumerate(self.questions) if i != index]
        for number, question in enumerate(remaining, start=1):
            question.question_number = number
        self.aggregate.questions = remaining
        return self.total_points

    def move_up(self, index: int) -> bool:
        self._require_no_draft()
        self._check_index(index)
        if index == 0:
            return False
        self._swap(index, index - 1)
        return True

    def move_down(self, index: int) -> bool:
        self._require_no_draft()
        self._check_index(index)
        if index == len(self.questions) - 1:
            return False
        self._swap(index, index + 1)
        return True

    def _swap(self, a: int, b: int) -> None:
        qs = self.questions
        qs[a].question_number, qs[b].question_number = qs[b].question_number, qs[a].question_number
        qs[a], qs[b] = qs[b], qs[a]

    def state(self) -> Dict:
        return {
            "draft": self.draft.model_dump() if self.draft else None,
            "options": [o.model_dump() for o in self.options] if self.draft else [],
            "next_option_id": self.next_option_id,
            "errors": self.errors,
            "total_points": self.total_points
        }
