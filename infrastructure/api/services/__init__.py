"""API services for the survey dashboard."""

from infrastructure.api.services.reconciliation_service import (
    MonthNotFoundError,
    ReconciliationService,
)

__all__ = ["MonthNotFoundError", "ReconciliationService"]
