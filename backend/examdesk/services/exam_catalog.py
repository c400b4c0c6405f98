"""
Exam catalog - the professor's exam list and the actions offered on it.
"""

import logging
from typing import Any, Dict, List, Optional

from ..errors import ExamNotEditableError, ExamNotFoundError, NotAProfessorError
from ..gateway import (
    COURSES,
    DESCENDING,
    EXAM_QUESTIONS,
    EXAM_RESULTS,
    EXAMS,
    PROFESSOR_COURSES,
    STUDENT_EXAMS,
    Gateway,
    Query,
    Relation,
)
from ..models import AuthContext, ExamStatus
from ..utils import format_duration, matches_search, utc_now_iso

logger = logging.getLogger(__name__)


class ExamCatalogService:
    """Lists, deletes and duplicates a professor's exams."""

    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    def _require_professor(self, auth: AuthContext) -> None:
        if not auth.is_professor:
            raise NotAProfessorError("Only professors can manage exams")

    async def _get_owned_exam(self, exam_id: str, auth: AuthContext) -> Dict[str, Any]:
        exam = await self.gateway.fetch_one(EXAMS, {"id": exam_id})
        if not exam or exam.get("professor_id") != auth.professor_id:
            raise ExamNotFoundError(f"Exam '{exam_id}' not found")
        return exam

    async def list_exams(
        self,
        auth: AuthContext,
        search: Optional[str] = None,
        course_id: Optional[str] = None,
        exam_type: Optional[str] = None,
        status: Optional[str] = None,
        session_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Exams of the courses the professor teaches, newest first, with the given filters."""
        self._require_professor(auth)

        links = await self.gateway.fetch(PROFESSOR_COURSES, Query(
            select=["course_id"],
            filters={"professor_id": auth.professor_id}
        ))
        course_ids = [link["course_id"] for link in links]
        if not course_ids:
            return []

        exams = await self.gateway.fetch(EXAMS, Query(
            filters={"course_id": {"$in": course_ids}},
            order_by=[("date", DESCENDING)],
            embed={"course": Relation(collection=COURSES, local_field="course_id")}
        ))

        results = []
        for exam in exams:
            course_name = exam["course"]["name"] if exam.get("course") else None
            if not matches_search(search, exam.get("title"), exam.get("description"), course_name):
                continue
            if course_id and exam.get("course_id") != course_id:
                continue
            if exam_type and exam_type != "all" and exam.get("type") != exam_type:
                continue
            if status and status != "all" and exam.get("status") != status:
                continue
            if session_id and exam.get("exam_session_id") != session_id:
                continue
            exam["duration_label"] = format_duration(exam.get("duration"))
            results.append(exam)
        return results

    async def delete_exam(self, exam_id: str, auth: AuthContext) -> None:
        """Delete a draft exam along with its questions, roster and results."""
        self._require_professor(auth)
        exam = await self._get_owned_exam(exam_id, auth)
        if exam.get("status") != ExamStatus.DRAFT.value:
            raise ExamNotEditableError("Only draft exams can be deleted")

        await self.gateway.delete(EXAM_RESULTS, filters={"exam_id": exam_id})
        await self.gateway.delete(EXAM_QUESTIONS, filters={"exam_id": exam_id})
        await self.gateway.delete(STUDENT_EXAMS, filters={"exam_id": exam_id})
        await self.gateway.delete(EXAMS, record_id=exam_id)
        logger.info(f"Deleted exam {exam_id}")

    async def duplicate_exam(self, exam_id: str, auth: AuthContext) -> Dict[str, Any]:
        """Copy an exam and its questions into a new draft. The roster is not copied."""
        self._require_professor(auth)
        source = await self._get_owned_exam(exam_id, auth)

        now = utc_now_iso()
        copy = {k: v for k, v in source.items() if k not in ("id", "created_at", "updated_at")}
        copy.update({
            "title": f"Copy of {source.get('title', '')}",
            "status": ExamStatus.DRAFT.value,
            "created_at": now,
            "updated_at": now
        })
        new_exam = (await self.gateway.insert(EXAMS, copy))[0]

        questions = await self.gateway.fetch(EXAM_QUESTIONS, Query(filters={"exam_id": exam_id}))
        if questions:
            await self.gateway.replace_set(
                EXAM_QUESTIONS, "exam_id", new_exam["id"],
                [{k: v for k, v in q.items() if k not in ("id", "exam_id")} for q in questions]
            )

        logger.info(f"Duplicated exam {exam_id} as {new_exam['id']} ({len(questions)} questions)")
        return new_exam

    async def class_statistics(self, exam_id: str, auth: AuthContext) -> Dict[str, Any]:
        """Average, highest and lowest score of an exam's results."""
        self._require_professor(auth)
        await self._get_owned_exam(exam_id, auth)
        stats = await self.gateway.rpc("get_exam_class_statistics", {"exam_id": exam_id})
        stats["exam_id"] = exam_id
        return stats
