"""
Care Status Routes

Care-burden indicators per region for the climate alert briefing.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from infrastructure.api.dependencies import get_service
from infrastructure.api.services.reconciliation_service import (
    MonthNotFoundError,
    ReconciliationService,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class CareStatusResponse(BaseModel):
    """Care-burden status of one region."""
    region: str
    estimated_solitary: int
    social_workers: int
    care_providers: int
    total_staff: int
    users_served: int
    staff_per_user: float
    is_overloaded: bool
    severity_pct: float
    institution_count: int


@router.get("", response_model=List[CareStatusResponse])
async def get_care_status(
    sheet_name: Optional[str] = Query(None, alias="sheetName"),
    alert_regions: Optional[str] = Query(
        None, alias="alertRegions",
        description="Comma-separated regions under an active alert, in alert order",
    ),
    service: ReconciliationService = Depends(get_service),
):
    """
    Care-burden status for every region (canonical order), or only for
    the alert regions when ``alertRegions`` is given.
    """
    regions = None
    if alert_regions:
        regions = [r.strip() for r in alert_regions.split(",") if r.strip()]

    try:
        return service.care_status(sheet_name, alert_regions=regions)
    except MonthNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
