"""Data access gateways."""

from .base import (
    Gateway,
    Query,
    Relation,
    new_id,
    ASCENDING,
    DESCENDING,
    EXAMS,
    EXAM_QUESTIONS,
    STUDENT_EXAMS,
    EXAM_RESULTS,
    COURSES,
    EXAM_SESSIONS,
    EXAM_CENTERS,
    STUDENTS,
    PROFESSORS,
    PROFESSOR_COURSES,
    STUDENT_COURSES,
    USERS,
    USER_SESSIONS,
)
from .memory import MemoryGateway
from .mongo import MongoGateway


def create_gateway(settings) -> Gateway:
    """Build the gateway selected by GATEWAY_BACKEND (not yet connected for mongo)."""
    if settings.GATEWAY_BACKEND == "memory":
        return MemoryGateway()
    return MongoGateway(use_transactions=settings.MONGODB_TRANSACTIONS)


__all__ = [
    "Gateway",
    "Query",
    "Relation",
    "new_id",
    "MemoryGateway",
    "MongoGateway",
    "create_gateway",
    "ASCENDING",
    "DESCENDING",
    "EXAMS",
    "EXAM_QUESTIONS",
    "STUDENT_EXAMS",
    "EXAM_RESULTS",
    "COURSES",
    "EXAM_SESSIONS",
    "EXAM_CENTERS",
    "STUDENTS",
    "PROFESSORS",
    "PROFESSOR_COURSES",
    "STUDENT_COURSES",
    "USERS",
    "USER_SESSIONS",
]
