"""
Roster assigner - which students sit the exam.

Students come in three ways: every active student of the exam's course at
once, a selection from the course table, or a selection from the full
student directory (the manual picker). Adds are de-duplicated against the
current roster and stay local until the wizard saves the exam.
"""

import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from ..errors import GatewayError
from ..gateway import (
    ASCENDING,
    STUDENT_COURSES,
    STUDENTS,
    Gateway,
    Query,
    Relation,
)
from ..models import ExamAggregate, StudentExamAssignment, StudentSummary, WizardPolicy
from ..utils import format_seat_number, matches_search

logger = logging.getLogger(__name__)


class RosterFilter(str, Enum):
    ALL = "all"
    ASSIGNED = "assigned"
    NOT_ASSIGNED = "not_assigned"


class RosterAssigner:
    """Manages the roster of one exam aggregate."""

    def __init__(
        self,
        aggregate: ExamAggregate,
        gateway: Gateway,
        policy: WizardPolicy,
        picker_limit: int = 100
    ):
        self.aggregate = aggregate
        self.gateway = gateway
        self.policy = policy
        self.picker_limit = picker_limit

        self.course_students: List[StudentSummary] = []
        self.loaded_course_id: Optional[str] = None
        self.all_students: List[StudentSummary] = []
        self.all_students_loaded = False

        self.loading = False
        self.error: Optional[str] = None

    @property
    def roster(self) -> List[StudentExamAssignment]:
        return self.aggregate.roster

    def assigned_ids(self) -> set:
        return {a.student_id for a in self.roster}

    # ============ LOADING ============

    async def load_course_students(self, course_id: Optional[str] = None) -> bool:
        """
        Fetch the active enrollments of a course (the exam's course by default).

        Returns False when the gateway fails; the roster is never touched.
        """
        course_id = course_id or self.aggregate.exam.course_id
        if not course_id:
            self.course_students = []
            self.loaded_course_id = None
            return True

        self.loading = True
        self.error = None
        try:
            rows = await self.gateway.fetch(STUDENT_COURSES, Query(
                filters={"course_id": course_id, "is_active": True},
                embed={"student": Relation(collection=STUDENTS, local_field="student_id")}
            ))
            self.course_students = [StudentSummary(**r["student"]) for r in rows if r.get("student")]
            self.loaded_course_id = course_id
            return True
        except GatewayError as e:
            logger.error(f"Error loading students of course {course_id}: {e}")
            self.error = "Could not load the students enrolled in this course."
            return False
        finally:
            self.loading = False

    async def load_all_students(self) -> bool:
        """Fetch the active student directory for manual, cross-course assignment."""
        self.loading = True
        self.error = None
        try:
            rows = await self.gateway.fetch(STUDENTS, Query(
                filters={"status": "active"},
                order_by=[("full_name", ASCENDING)]
            ))
            self.all_students = [StudentSummary(**r) for r in rows]
            self.all_students_loaded = True
            return True
        except GatewayError as e:
            logger.error(f"Error loading student directory: {e}")
            self.error = "Could not load the student directory."
            return False
        finally:
            self.loading = False

    # ============ ROSTER MUTATIONS ============

    def _add(self, student_ids: Iterable[str]) -> int:
        assigned = self.assigned_ids()
        added = 0
        for student_id in student_ids:
            if student_id in assigned:
                continue
            self.roster.append(StudentExamAssignment(
                exam_id=self.aggregate.exam.id,
                student_id=student_id,
                seat_number=None,
                attendance_status=None,
                attempt_status=None,
                has_incidents=False,
                notes=None
            ))
            assigned.add(student_id)
            added += 1
        return added

    def assign_all_course_students(self) -> int:
        """Add every loaded course student not yet on the roster. Returns how many were added."""
        return self._add(s.id for s in self.course_students)

    def add_selected(self, student_ids: Iterable[str]) -> int:
        return self._add(student_ids)

    def remove_student(self, student_id: str) -> bool:
        before = len(self.roster)
        self.aggregate.roster = [a for a in self.roster if a.student_id != student_id]
        return len(self.roster) < before

    def remove_all(self) -> None:
        self.aggregate.roster = []

    def generate_seat_numbers(self) -> None:
        """Label seats 1..N in the current roster order."""
        for position, assignment in enumerate(self.roster, start=1):
            assignment.seat_number = format_seat_number(position, self.policy.seat_number_format)

    # ============ VIEWS ============

    def _student_lookup(self) -> Dict[str, StudentSummary]:
        lookup = {s.id: s for s in self.all_students}
        lookup.update({s.id: s for s in self.course_students})
        return lookup

    def course_view(
        self,
        search: str = "",
        status_filter: RosterFilter = RosterFilter.ALL
    ) -> List[Dict[str, Any]]:
        """Course students matching the search, with their assignment state."""
        assigned = {a.student_id: a for a in self.roster}
        rows = []
        for student in self.course_students:
            if not matches_search(search, student.full_name, student.email, student.student_number):
                continue
            is_assigned = student.id in assigned
            if status_filter == RosterFilter.ASSIGNED and not is_assigned:
                continue
            if status_filter == RosterFilter.NOT_ASSIGNED and is_assigned:
                continue
            row = student.model_dump()
            row["assigned"] = is_assigned
            row["seat_number"] = assigned[student.id].seat_number if is_assigned else None
            rows.append(row)
        return rows

    def picker(self, search: str = "") -> Dict[str, Any]:
        """Directory students matching the search, capped for display."""
        matches = [
            s for s in self.all_students
            if matches_search(search, s.full_name, s.email, s.student_number)
        ]
        truncated = len(matches) > self.picker_limit
        return {
            "students": [s.model_dump() for s in matches[:self.picker_limit]],
            "total": len(matches),
            "truncated": truncated,
            "hint": (
                f"Showing the first {self.picker_limit} of {len(matches)} students. "
                "Narrow your search to see more."
            ) if truncated else None
        }

    def roster_view(self) -> List[Dict[str, Any]]:
        """The roster with whatever student details have been loaded."""
        lookup = self._student_lookup()
        rows = []
        for assignment in self.roster:
            row = assignment.model_dump()
            student = lookup.get(assignment.student_id)
            row["student"] = student.model_dump() if student else None
            rows.append(row)
        return rows
