"""
Step validator - checks one wizard step's slice of the exam.

Every function returns a {field: message} map and never raises. An empty map
means the step is valid. The caller decides whether to block navigation.
"""

from enum import IntEnum
from typing import Dict, List

from ..models import (
    MULTIPLE_CHOICE,
    ExamAggregate,
    StudentExamAssignment,
    WizardPolicy,
)
from ..models.exam import Exam

MIN_DURATION_MINUTES = 15
MIN_OPTIONS = 2

ErrorMap = Dict[str, str]


class WizardStep(IntEnum):
    BASIC_INFO = 0
    SCHEDULING = 1
    QUESTIONS = 2
    STUDENTS = 3
    FINALIZE = 4


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_basic_info(exam: Exam) -> ErrorMap:
    errors: ErrorMap = {}

    if _blank(exam.title):
        errors["title"] = "Title is required"
    if _blank(exam.course_id):
        errors["course_id"] = "A course must be selected"
    if _blank(exam.type):
        errors["type"] = "Exam type is required"
    if exam.total_points is None or exam.total_points <= 0:
        errors["total_points"] = "Total points must be greater than 0"
    elif exam.passing_grade is None or not 0 <= exam.passing_grade <= exam.total_points:
        errors["passing_grade"] = "Passing grade must be between 0 and the total points"

    return errors


def validate_scheduling(exam: Exam, policy: WizardPolicy) -> ErrorMap:
    errors: ErrorMap = {}

    if _blank(exam.date):
        errors["date"] = "Exam date is required"
    if exam.duration is None or exam.duration < MIN_DURATION_MINUTES:
        errors["duration"] = f"An exam lasts at least {MIN_DURATION_MINUTES} minutes"
    if policy.require_session and _blank(exam.exam_session_id):
        errors["exam_session_id"] = "An exam session must be selected"
    if policy.require_center and _blank(exam.exam_center_id):
        errors["exam_center_id"] = "An exam center must be selected"

    return errors


def validate_question(question) -> List[str]:
    """Problems with a single question, in display order."""
    problems = []

    if _blank(question.question_text):
        problems.append("question text is required")
    if question.points is None or question.points <= 0:
        problems.append("points must be greater than 0")

    if question.question_type == MULTIPLE_CHOICE:
        options = question.options or []
        if len(options) < MIN_OPTIONS:
            problems.append(f"at least {MIN_OPTIONS} options are required")
        if any(_blank(o.text) for o in options):
            problems.append("every option needs a text")
        if question.correct_answer is None:
            problems.append("a correct answer must be selected")
        elif question.correct_answer not in {o.id for o in options}:
            problems.append("the correct answer is not one of the options")

    return problems


def validate_questions(aggregate: ExamAggregate, policy: WizardPolicy) -> ErrorMap:
    errors: ErrorMap = {}
    questions = aggregate.questions

    if not questions:
        errors["questions"] = "Add at least one question to the exam"
        return errors

    for question in questions:
        problems = validate_question(question)
        if problems:
            errors[f"question_{question.question_number}"] = (
                f"Question {question.question_number}: " + "; ".join(problems)
            )

    if policy.require_points_match:
        question_total = aggregate.question_points()
        exam_total = aggregate.exam.total_points
        if question_total != exam_total:
            errors["questions"] = (
                f"Question points total ({question_total:g}) must equal "
                f"the exam total points ({exam_total:g})"
            )

    return errors


def validate_roster(roster: List[StudentExamAssignment], policy: WizardPolicy) -> ErrorMap:
    if policy.require_students and not roster:
        return {"students": "Assign at least one student to the exam"}
    return {}


def validate_step(step: WizardStep, aggregate: ExamAggregate, policy: WizardPolicy) -> ErrorMap:
    """Validate one step. FINALIZE merges the maps of every earlier step."""
    if step == WizardStep.BASIC_INFO:
        return validate_basic_info(aggregate.exam)
    if step == WizardStep.SCHEDULING:
        return validate_scheduling(aggregate.exam, policy)
    if step == WizardStep.QUESTIONS:
        return validate_questions(aggregate, policy)
    if step == WizardStep.STUDENTS:
        return validate_roster(aggregate.roster, policy)

    merged: ErrorMap = {}
    for errors in validate_all(aggregate, policy).values():
        merged.update(errors)
    return merged


def validate_all(aggregate: ExamAggregate, policy: WizardPolicy) -> Dict[WizardStep, ErrorMap]:
    """Re-run every data step. Only failing steps appear in the result."""
    results = {}
    for step in (WizardStep.BASIC_INFO, WizardStep.SCHEDULING, WizardStep.QUESTIONS, WizardStep.STUDENTS):
        errors = validate_step(step, aggregate, policy)
        if errors:
            results[step] = errors
    return results
