"""
ExamDesk - exam authoring wizard backend.
"""

__version__ = "1.0.0"
