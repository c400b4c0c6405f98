"""Tests for per-step validation of the exam wizard."""

from examdesk.models import (
    LENIENT,
    STRICT,
    Exam,
    ExamAggregate,
    MultipleChoiceQuestion,
    OpenEndedQuestion,
    QuestionOption,
    StudentExamAssignment,
)
from examdesk.services import WizardStep, validate_all, validate_step
from examdesk.services.step_validator import validate_basic_info, validate_question, validate_scheduling


def _exam(**fields):
    base = {
        "title": "Midterm",
        "course_id": "course_1",
        "type": "final",
        "total_points": 20,
        "passing_grade": 10,
        "date": "2024-11-04T09:00:00",
        "duration": 90,
        "exam_session_id": "session_1",
        "exam_center_id": "center_1",
    }
    base.update(fields)
    return Exam(**base)


def _essay(number, points):
    return OpenEndedQuestion(
        question_number=number,
        question_text=f"Question {number}",
        question_type="essay",
        points=points
    )


def _aggregate(exam=None, questions=None, roster=None):
    return ExamAggregate(
        exam=exam or _exam(),
        questions=questions if questions is not None else [_essay(1, 10), _essay(2, 10)],
        roster=roster if roster is not None else [StudentExamAssignment(student_id="stud_1")]
    )


class TestBasicInfo:
    def test_missing_title_is_the_only_error(self):
        errors = validate_basic_info(_exam(title=""))
        assert errors == {"title": "Title is required"}

    def test_whitespace_title_is_missing(self):
        assert "title" in validate_basic_info(_exam(title="   "))

    def test_course_and_type_required(self):
        errors = validate_basic_info(_exam(course_id=None, type=None))
        assert set(errors) == {"course_id", "type"}

    def test_total_points_must_be_positive(self):
        errors = validate_basic_info(_exam(total_points=0))
        assert set(errors) == {"total_points"}

    def test_passing_grade_within_total(self):
        assert "passing_grade" in validate_basic_info(_exam(passing_grade=25))
        assert "passing_grade" in validate_basic_info(_exam(passing_grade=-1))
        assert validate_basic_info(_exam(passing_grade=20)) == {}
        assert validate_basic_info(_exam(passing_grade=0)) == {}


class TestScheduling:
    def test_valid(self):
        assert validate_scheduling(_exam(), STRICT) == {}

    def test_duration_minimum(self):
        assert "duration" in validate_scheduling(_exam(duration=10), STRICT)
        assert validate_scheduling(_exam(duration=15), STRICT) == {}

    def test_session_and_center_depend_on_policy(self):
        exam = _exam(exam_session_id=None, exam_center_id=None)
        assert validate_scheduling(exam, STRICT) == {}
        assert set(validate_scheduling(exam, LENIENT)) == {"exam_session_id", "exam_center_id"}

    def test_date_required(self):
        assert "date" in validate_scheduling(_exam(date=""), STRICT)


class TestQuestions:
    def test_no_questions(self):
        errors = validate_step(WizardStep.QUESTIONS, _aggregate(questions=[]), LENIENT)
        assert errors == {"questions": "Add at least one question to the exam"}

    def test_points_mismatch_strict_only(self):
        aggregate = _aggregate(questions=[_essay(1, 5), _essay(2, 5), _essay(3, 5)])

        errors = validate_step(WizardStep.QUESTIONS, aggregate, STRICT)
        assert "15" in errors["questions"]
        assert "20" in errors["questions"]

        assert validate_step(WizardStep.QUESTIONS, aggregate, LENIENT) == {}

    def test_multiple_choice_problems(self):
        question = MultipleChoiceQuestion(
            question_number=1,
            question_text="Pick one",
            points=2,
            options=[QuestionOption(id=1, text="yes"), QuestionOption(id=2, text="")],
            correct_answer=7
        )
        problems = validate_question(question)
        assert "every option needs a text" in problems
        assert "the correct answer is not one of the options" in problems

    def test_invalid_question_keyed_by_number(self):
        bad = MultipleChoiceQuestion(
            question_number=2,
            question_text="Pick one",
            points=10,
            options=[QuestionOption(id=1, text="only")]
        )
        aggregate = _aggregate(questions=[_essay(1, 10), bad])
        errors = validate_step(WizardStep.QUESTIONS, aggregate, STRICT)
        assert list(errors) == ["question_2"]


class TestRosterAndFinalize:
    def test_students_required_in_strict(self):
        aggregate = _aggregate(roster=[])
        assert "students" in validate_step(WizardStep.STUDENTS, aggregate, STRICT)
        assert validate_step(WizardStep.STUDENTS, aggregate, LENIENT) == {}

    def test_finalize_merges_every_step(self):
        aggregate = _aggregate(exam=_exam(title="", duration=5), roster=[])
        errors = validate_step(WizardStep.FINALIZE, aggregate, STRICT)
        assert {"title", "duration", "students"} <= set(errors)

    def test_validate_all_lists_failing_steps_only(self):
        aggregate = _aggregate(exam=_exam(title=""))
        failures = validate_all(aggregate, STRICT)
        assert list(failures) == [WizardStep.BASIC_INFO]

    def test_valid_aggregate(self):
        assert validate_all(_aggregate(), STRICT) == {}
