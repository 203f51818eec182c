"""
Database module for the elder-care survey dashboard.

Provides SQLAlchemy models, connection management, and the survey repository.
"""

from .connection import get_engine, get_session, init_db, session_scope
from .models import Base, Institution, SurveySubmission
from .repository import SurveyRepository

__all__ = [
    "get_engine",
    "get_session",
    "init_db",
    "session_scope",
    "Base",
    "Institution",
    "SurveySubmission",
    "SurveyRepository",
]
