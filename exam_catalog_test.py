"""Tests for the professor's exam list and its actions."""

import pytest

from conftest import OTHER_PROFESSOR, PROFESSOR, STUDENT, run
from examdesk.errors import ExamNotEditableError, ExamNotFoundError, NotAProfessorError
from examdesk.gateway import EXAM_QUESTIONS, EXAMS, STUDENT_EXAMS, Query
from examdesk.services import ExamCatalogService


@pytest.fixture
def catalog(gateway):
    return ExamCatalogService(gateway)


def test_list_newest_first_with_course_and_duration(catalog):
    exams = run(catalog.list_exams(PROFESSOR))

    assert [e["id"] for e in exams] == ["exam_published", "exam_draft"]
    assert exams[1]["course"]["name"] == "Algorithms"
    assert exams[1]["duration_label"] == "1h 30min"
    assert exams[0]["duration_label"] == "2h"


def test_list_filters(catalog):
    assert [e["id"] for e in run(catalog.list_exams(PROFESSOR, status="draft"))] == ["exam_draft"]
    assert [e["id"] for e in run(catalog.list_exams(PROFESSOR, exam_type="final"))] == ["exam_published"]
    assert [e["id"] for e in run(catalog.list_exams(PROFESSOR, course_id="course_1"))] == ["exam_draft"]
    assert [e["id"] for e in run(catalog.list_exams(PROFESSOR, search="databases"))] == ["exam_published"]
    assert len(run(catalog.list_exams(PROFESSOR, status="all", exam_type="all"))) == 2


def test_professor_without_courses_sees_nothing(catalog):
    assert run(catalog.list_exams(OTHER_PROFESSOR)) == []


def test_students_are_refused(catalog):
    with pytest.raises(NotAProfessorError):
        run(catalog.list_exams(STUDENT))


def test_delete_draft_cascades(gateway, catalog):
    run(catalog.delete_exam("exam_draft", PROFESSOR))

    assert run(gateway.fetch_one(EXAMS, {"id": "exam_draft"})) is None
    assert run(gateway.fetch(EXAM_QUESTIONS, Query(filters={"exam_id": "exam_draft"}))) == []
    assert run(gateway.fetch(STUDENT_EXAMS, Query(filters={"exam_id": "exam_draft"}))) == []


def test_published_exam_cannot_be_deleted(catalog):
    with pytest.raises(ExamNotEditableError):
        run(catalog.delete_exam("exam_published", PROFESSOR))


def test_foreign_exam_is_not_found(catalog):
    with pytest.raises(ExamNotFoundError):
        run(catalog.delete_exam("exam_draft", OTHER_PROFESSOR))


def test_duplicate_copies_questions_not_roster(gateway, catalog):
    copy = run(catalog.duplicate_exam("exam_published", PROFESSOR))
    assert copy["title"] == "Copy of Databases final"
    assert copy["status"] == "draft"

    copy = run(catalog.duplicate_exam("exam_draft", PROFESSOR))
    questions = run(gateway.fetch(EXAM_QUESTIONS, Query(filters={"exam_id": copy["id"]})))
    assert sorted(q["question_number"] for q in questions) == [1, 2]
    assert run(gateway.fetch(STUDENT_EXAMS, Query(filters={"exam_id": copy["id"]}))) == []


def test_class_statistics(catalog):
    stats = run(catalog.class_statistics("exam_published", PROFESSOR))

    assert stats == {"average": 15.17, "highest": 18, "lowest": 12, "count": 3, "exam_id": "exam_published"}


def test_class_statistics_without_results(catalog):
    stats = run(catalog.class_statistics("exam_draft", PROFESSOR))

    assert stats["count"] == 0
    assert stats["average"] is None


def test_exam_without_owner_is_not_found(gateway, catalog):
    run(gateway.insert(EXAMS, {"id": "exam_orphan", "title": "Orphan", "course_id": "course_1", "status": "draft"}))

    with pytest.raises(ExamNotFoundError):
        run(catalog.delete_exam("exam_orphan", PROFESSOR))
