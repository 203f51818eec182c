"""
FastAPI dependencies

Request-scoped database session and the reconciliation service built on
it. Tests override ``get_db`` and ``get_settings``.
"""

from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from infrastructure.api.services.reconciliation_service import ReconciliationService
from infrastructure.database.connection import get_session
from infrastructure.database.repository import SurveyRepository
from infrastructure.utilities.common import load_settings, solitary_estimates_from


def get_db() -> Generator[Session, None, None]:
    session = get_session()
    try:
        yield session
    finally:
        session.close()


def get_settings() -> dict:
    return load_settings()


def get_service(
    session: Session = Depends(get_db),
    settings: dict = Depends(get_settings),
) -> ReconciliationService:
    return ReconciliationService(
        SurveyRepository(session),
        solitary_estimates=solitary_estimates_from(settings),
    )
