"""Shared fixtures: a seeded in-memory school database and the callers using it."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from examdesk.gateway import (
    COURSES,
    EXAM_CENTERS,
    EXAM_QUESTIONS,
    EXAM_RESULTS,
    EXAM_SESSIONS,
    EXAMS,
    PROFESSOR_COURSES,
    PROFESSORS,
    STUDENT_COURSES,
    STUDENT_EXAMS,
    STUDENTS,
    USER_SESSIONS,
    USERS,
    MemoryGateway,
)
from examdesk.models import STRICT, AuthContext
from examdesk.services import ExamWizard, WizardStep

PROFESSOR = AuthContext(user_id="user_prof1", role="professor", professor_id="prof_1")
OTHER_PROFESSOR = AuthContext(user_id="user_prof2", role="professor", professor_id="prof_2")
STUDENT = AuthContext(user_id="user_stud1", role="student", student_id="stud_1")


def run(coro):
    return asyncio.run(coro)


def seed_data():
    tomorrow = (datetime.now(timezone.utc) + timedelta(days=1)).isoformat()
    yesterday = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()

    return {
        COURSES: [
            {"id": "course_1", "name": "Algorithms", "code": "CS201"},
            {"id": "course_2", "name": "Databases", "code": "CS301"},
        ],
        EXAM_SESSIONS: [
            {"id": "session_old", "name": "Spring 2024", "academic_year": "2023-2024", "semester": 2},
            {"id": "session_1", "name": "Fall 2024", "academic_year": "2024-2025", "semester": 1},
        ],
        EXAM_CENTERS: [
            {"id": "center_2", "name": "Science Building"},
            {"id": "center_1", "name": "Main Hall"},
        ],
        STUDENTS: [
            {"id": "stud_1", "user_id": "user_stud1", "full_name": "Alice Martin",
             "email": "alice@school.edu", "student_number": "S001", "status": "active"},
            {"id": "stud_2", "full_name": "Bob Diallo",
             "email": "bob@school.edu", "student_number": "S002", "status": "active"},
            {"id": "stud_3", "full_name": "Chloe Nguyen",
             "email": "chloe@school.edu", "student_number": "S003", "status": "active"},
            {"id": "stud_4", "full_name": "David Okafor",
             "email": "david@school.edu", "student_number": "S004", "status": "inactive"},
        ],
        STUDENT_COURSES: [
            {"student_id": "stud_1", "course_id": "course_1", "is_active": True},
            {"student_id": "stud_2", "course_id": "course_1", "is_active": True},
            {"student_id": "stud_3", "course_id": "course_1", "is_active": False},
            {"student_id": "stud_3", "course_id": "course_2", "is_active": True},
        ],
        PROFESSORS: [
            {"id": "prof_1", "user_id": "user_prof1", "full_name": "Dr. Grace Hopper"},
            {"id": "prof_2", "user_id": "user_prof2", "full_name": "Dr. Alan Turing"},
        ],
        PROFESSOR_COURSES: [
            {"professor_id": "prof_1", "course_id": "course_1"},
            {"professor_id": "prof_1", "course_id": "course_2"},
        ],
        USERS: [
            {"user_id": "user_prof1", "email": "hopper@school.edu", "role": "professor"},
            {"user_id": "user_prof2", "email": "turing@school.edu", "role": "professor"},
            {"user_id": "user_stud1", "email": "alice@school.edu", "role": "student"},
        ],
        USER_SESSIONS: [
            {"session_token": "token_prof1", "user_id": "user_prof1", "expires_at": tomorrow},
            {"session_token": "token_prof2", "user_id": "user_prof2", "expires_at": tomorrow},
            {"session_token": "token_student", "user_id": "user_stud1", "expires_at": tomorrow},
            {"session_token": "token_expired", "user_id": "user_prof1", "expires_at": yesterday},
        ],
        EXAMS: [
            {"id": "exam_draft", "title": "Algorithms midterm", "description": "Sorting and graphs",
             "course_id": "course_1", "professor_id": "prof_1", "exam_session_id": "session_1",
             "exam_center_id": "center_1", "date": "2024-11-04T09:00:00", "duration": 90,
             "type": "midterm", "room": "A12", "total_points": 20, "passing_grade": 10,
             "status": "draft"},
            {"id": "exam_published", "title": "Databases final", "description": "",
             "course_id": "course_2", "professor_id": "prof_1", "exam_session_id": "session_1",
             "exam_center_id": "center_2", "date": "2025-01-15T14:00:00", "duration": 120,
             "type": "final", "room": "B01", "total_points": 20, "passing_grade": 10,
             "status": "published"},
        ],
        EXAM_QUESTIONS: [
            {"id": "exam_question_q1", "exam_id": "exam_draft", "question_number": 1,
             "question_text": "Which sort is stable?", "question_type": "multiple_choice",
             "points": 10, "correct_answer": 2,
             "options": [{"id": 1, "text": "Quicksort"}, {"id": 2, "text": "Merge sort"},
                         {"id": 3, "text": "Heapsort"}]},
            {"id": "exam_question_q2", "exam_id": "exam_draft", "question_number": 2,
             "question_text": "Explain Dijkstra's algorithm.", "question_type": "essay",
             "points": 10, "rubric": "Correctness and complexity"},
        ],
        STUDENT_EXAMS: [
            {"id": "student_exam_1", "exam_id": "exam_draft", "student_id": "stud_1",
             "seat_number": "001", "attendance_status": None, "attempt_status": None,
             "has_incidents": False, "notes": None},
        ],
        EXAM_RESULTS: [
            {"exam_id": "exam_published", "student_id": "stud_3", "score": 12},
            {"exam_id": "exam_published", "student_id": "stud_1", "score": 15.5},
            {"exam_id": "exam_published", "student_id": "stud_2", "score": 18},
        ],
    }


def add_multiple_choice(wizard, text="What is 2 + 2?", points=5):
    """Author a valid multiple-choice question through the editor."""
    editor = wizard.question_editor
    editor.add_question()
    editor.update_draft(question_text=text, points=points, correct_answer=1)
    for option_id, option_text in zip((1, 2, 3, 4), ("4", "3", "5", "22")):
        editor.set_option_text(option_id, option_text)
    return editor.save_question()


def fill_basic_info(wizard, total_points=20):
    wizard.update_fields({
        "title": "Graph theory quiz",
        "course_id": "course_1",
        "type": "quiz",
        "total_points": total_points,
        "passing_grade": total_points / 2,
    })


def walk_to_finalize(wizard):
    while wizard.step != WizardStep.FINALIZE:
        assert wizard.next(), wizard.validation_errors


@pytest.fixture
def gateway():
    return MemoryGateway(seed_data())


@pytest.fixture
def professor_auth():
    return PROFESSOR


@pytest.fixture
def new_wizard(gateway):
    """A loaded create-mode wizard for the professor, strict policy."""
    wizard = ExamWizard(gateway, PROFESSOR, STRICT)
    run(wizard.load())
    return wizard


@pytest.fixture
def edit_wizard(gateway):
    """A loaded edit-mode wizard on the seeded draft exam, strict policy."""
    wizard = ExamWizard(gateway, PROFESSOR, STRICT, exam_id="exam_draft")
    run(wizard.load())
    return wizard
