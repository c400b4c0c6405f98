"""
Data access gateway contract.

Every component talks to storage through this interface: record CRUD over
named collections, relational fetches, replace-all of an exam's children,
server-side procedures and session lookup.
"""

import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel

from ..errors import GatewayError
from ..models import AuthContext

# Collections
EXAMS = "exams"
EXAM_QUESTIONS = "exam_questions"
STUDENT_EXAMS = "student_exams"
EXAM_RESULTS = "exam_results"
COURSES = "courses"
EXAM_SESSIONS = "exam_sessions"
EXAM_CENTERS = "exam_centers"
STUDENTS = "students"
PROFESSORS = "professors"
PROFESSOR_COURSES = "professor_courses"
STUDENT_COURSES = "student_courses"
USERS = "users"
USER_SESSIONS = "user_sessions"

ASCENDING = 1
DESCENDING = -1


class Relation(BaseModel):
    """Embed the record of `collection` whose `foreign_field` equals our `local_field`."""
    collection: str
    local_field: str
    foreign_field: str = "id"
    many: bool = False


class Query(BaseModel):
    select: Optional[List[str]] = None
    filters: Dict[str, Any] = {}
    order_by: List[Tuple[str, int]] = []
    limit: Optional[int] = None
    embed: Dict[str, Relation] = {}


def new_id(collection: str) -> str:
    """Surrogate id in the form exam_1a2b3c4d."""
    return f"{collection.rstrip('s')}_{uuid.uuid4().hex[:8]}"


class Gateway(ABC):
    """Async data access interface."""

    @abstractmethod
    async def fetch(self, collection: str, query: Optional[Query] = None) -> List[Dict[str, Any]]:
        """Read records, optionally filtered, ordered, limited and joined."""

    @abstractmethod
    async def insert(
        self,
        collection: str,
        records: Union[Dict[str, Any], List[Dict[str, Any]]]
    ) -> List[Dict[str, Any]]:
        """Insert one or many records. Records without an id get one. Returns the stored records."""

    @abstractmethod
    async def update(self, collection: str, record_id: str, partial: Dict[str, Any]) -> Dict[str, Any]:
        """Apply a partial update and return the full record."""

    @abstractmethod
    async def delete(
        self,
        collection: str,
        record_id: Optional[str] = None,
        filters: Optional[Dict[str, Any]] = None
    ) -> int:
        """Delete by id or by filter. Returns the number of deleted records."""

    @abstractmethod
    async def replace_set(
        self,
        collection: str,
        parent_field: str,
        parent_id: str,
        items: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        """
        Make the children of `parent_id` exactly `items`.

        Every item is stamped with `parent_field = parent_id` and gets a fresh id.
        If the new set cannot be written, the previous set is left in place.
        """

    async def fetch_one(self, collection: str, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        rows = await self.fetch(collection, Query(filters=filters, limit=1))
        return rows[0] if rows else None

    async def rpc(self, name: str, args: Optional[Dict[str, Any]] = None) -> Any:
        """Run a named server-side procedure."""
        handler = getattr(self, f"_rpc_{name}", None)
        if handler is None:
            raise GatewayError(f"Unknown procedure '{name}'")
        try:
            call = handler(**(args or {}))
        except TypeError as e:
            raise GatewayError(f"Bad arguments for procedure '{name}': {e}") from e
        return await call

    async def current_user(self, session_token: str) -> Optional[AuthContext]:
        """Resolve a session token into the caller's identity, or None when the session is unusable."""
        session = await self.fetch_one(USER_SESSIONS, {"session_token": session_token})
        if not session:
            return None

        expires_at = session.get("expires_at")
        if isinstance(expires_at, str):
            expires_at = datetime.fromisoformat(expires_at)
        if expires_at is not None:
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            if expires_at < datetime.now(timezone.utc):
                return None

        user = await self.fetch_one(USERS, {"user_id": session["user_id"]})
        if not user:
            return None

        role = user.get("role", "student")
        professor_id = None
        student_id = None
        if role == "professor":
            professor = await self.fetch_one(PROFESSORS, {"user_id": user["user_id"]})
            professor_id = professor["id"] if professor else None
        elif role == "student":
            student = await self.fetch_one(STUDENTS, {"user_id": user["user_id"]})
            student_id = student["id"] if student else None

        return AuthContext(
            user_id=user["user_id"],
            role=role,
            professor_id=professor_id,
            student_id=student_id
        )

    @staticmethod
    def _class_statistics(scores: List[float]) -> Dict[str, Any]:
        if not scores:
            return {"average": None, "highest": None, "lowest": None, "count": 0}
        return {
            "average": round(sum(scores) / len(scores), 2),
            "highest": max(scores),
            "lowest": min(scores),
            "count": len(scores)
        }
