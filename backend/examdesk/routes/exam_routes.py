"""
Exam management routes.

Endpoints:
- GET /api/exams
- DELETE /api/exams/{exam_id}
- POST /api/exams/{exam_id}/duplicate
- GET /api/exams/{exam_id}/statistics
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ..gateway import Gateway
from ..models import AuthContext
from ..services import ExamCatalogService
from .auth import create_auth_dependency, to_http_error


def create_exam_routes(gateway: Gateway) -> APIRouter:
    """Create exam routes with the data access gateway."""

    router = APIRouter(prefix="/api/exams", tags=["exams"])
    catalog = ExamCatalogService(gateway)
    get_current_user = create_auth_dependency(gateway)

    @router.get("")
    async def list_exams(
        search: Optional[str] = None,
        course_id: Optional[str] = None,
        type: Optional[str] = None,
        status: Optional[str] = None,
        session_id: Optional[str] = None,
        user: AuthContext = Depends(get_current_user)
    ):
        """List the professor's exams."""
        try:
            return await catalog.list_exams(
                user,
                search=search,
                course_id=course_id,
                exam_type=type,
                status=status,
                session_id=session_id
            )
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.delete("/{exam_id}")
    async def delete_exam(exam_id: str, user: AuthContext = Depends(get_current_user)):
        """Delete a draft exam and everything attached to it."""
        try:
            await catalog.delete_exam(exam_id, user)
            return {"message": "Exam deleted successfully"}
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.post("/{exam_id}/duplicate")
    async def duplicate_exam(exam_id: str, user: AuthContext = Depends(get_current_user)):
        """Copy an exam and its questions into a new draft."""
        try:
            return await catalog.duplicate_exam(exam_id, user)
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    @router.get("/{exam_id}/statistics")
    async def get_class_statistics(exam_id: str, user: AuthContext = Depends(get_current_user)):
        """Class average, highest and lowest score."""
        try:
            return await catalog.class_statistics(exam_id, user)
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_error(e)

    return router
