"""HTTP routers."""

from .exam_routes import create_exam_routes
from .wizard_routes import create_wizard_routes

__all__ = ["create_exam_routes", "create_wizard_routes"]
