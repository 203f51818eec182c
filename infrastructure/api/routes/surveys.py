"""
Survey Routes

Month-scoped endpoints for the admin map dashboard: available sheets,
raw submissions, validation results, regional rollups and the
allocation cross-check. ``sheetName`` defaults to the most recent month.
"""

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from care_survey.aggregation.allocation import SORT_KEYS
from infrastructure.api.dependencies import get_service
from infrastructure.api.services.reconciliation_service import (
    MonthNotFoundError,
    ReconciliationService,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class RegionStatsResponse(BaseModel):
    """Rollups in canonical region order plus province totals."""
    month: str
    regions: List[dict]
    province: dict
    unmatched_codes: List[str]
    out_of_region_codes: List[str]


def _month_not_found(e: MonthNotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(e))


@router.get("/sheets", response_model=List[str])
async def list_sheets(service: ReconciliationService = Depends(get_service)):
    """Available months, most recent first."""
    return service.available_months()


@router.get("/surveys")
async def get_surveys(
    sheet_name: Optional[str] = Query(None, alias="sheetName"),
    service: ReconciliationService = Depends(get_service),
):
    """Zero-defaulted submissions for a month."""
    try:
        return service.surveys(sheet_name)
    except MonthNotFoundError as e:
        raise _month_not_found(e)


@router.get("/validation", response_model=Dict[str, Dict[str, str]])
async def get_validation(
    sheet_name: Optional[str] = Query(None, alias="sheetName"),
    service: ReconciliationService = Depends(get_service),
):
    """Violations per institution code; clean institutions are omitted."""
    try:
        return service.validation(sheet_name)
    except MonthNotFoundError as e:
        raise _month_not_found(e)


@router.get("/region-stats", response_model=RegionStatsResponse)
async def get_region_stats(
    sheet_name: Optional[str] = Query(None, alias="sheetName"),
    service: ReconciliationService = Depends(get_service),
):
    try:
        return RegionStatsResponse(**service.region_stats(sheet_name))
    except MonthNotFoundError as e:
        raise _month_not_found(e)


@router.get("/regions/{region}/institutions")
async def get_region_institutions(
    region: str,
    sheet_name: Optional[str] = Query(None, alias="sheetName"),
    service: ReconciliationService = Depends(get_service),
):
    """Submission status of each institution in a region, roster order."""
    try:
        return service.institutions(region, sheet_name)
    except MonthNotFoundError as e:
        raise _month_not_found(e)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown region {region!r}")


@router.get("/assignment-changes")
async def get_assignment_changes(
    sheet_name: Optional[str] = Query(None, alias="sheetName"),
    service: ReconciliationService = Depends(get_service),
):
    try:
        return service.assignment_changes(sheet_name)
    except MonthNotFoundError as e:
        raise _month_not_found(e)


@router.get("/allocation-mismatches")
async def get_allocation_mismatches(
    sheet_name: Optional[str] = Query(None, alias="sheetName"),
    region: Optional[str] = None,
    mismatch_only: bool = Query(False, alias="mismatchOnly"),
    sort_key: str = Query("total_abs_diff", alias="sortKey"),
    service: ReconciliationService = Depends(get_service),
):
    if sort_key not in SORT_KEYS:
        raise HTTPException(
            status_code=400,
            detail=f"sortKey must be one of {', '.join(SORT_KEYS)}"
        )
    try:
        return service.allocation_mismatches(
            sheet_name, region=region, mismatch_only=mismatch_only, sort_key=sort_key,
        )
    except MonthNotFoundError as e:
        raise _month_not_found(e)
