#!/usr/bin/env python3
"""
FastAPI service for the elder-care survey dashboard

Serves:
- Monthly survey sheets and validation results
- Regional rollups and institution submission status
- Allocation mismatch and assignment change lists
- Care-burden status for the climate alert briefing
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from infrastructure.api.dependencies import get_db
from infrastructure.api.routes import care, surveys
from infrastructure.database.connection import check_connection, get_table_counts

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting Survey Dashboard API")
    yield
    logger.info("Shutting down Survey Dashboard API")


app = FastAPI(
    title="Survey Dashboard API",
    description="Monthly elder-care survey validation and regional rollups",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(surveys.router, prefix="/api/admin", tags=["surveys"])
app.include_router(care.router, prefix="/api/care-status", tags=["care"])


@app.get("/")
async def root():
    """API documentation."""
    return {
        "name": "Survey Dashboard API",
        "version": "1.0.0",
        "endpoints": {
            "GET /api/admin/sheets": "Available months, most recent first",
            "GET /api/admin/surveys": "Submissions for a month",
            "GET /api/admin/validation": "Violations per institution",
            "GET /api/admin/region-stats": "Regional rollups and province totals",
            "GET /api/admin/regions/{region}/institutions": "Institution status in a region",
            "GET /api/admin/assignment-changes": "Change-of-assignment records",
            "GET /api/admin/allocation-mismatches": "Roster vs submitted allocation",
            "GET /api/care-status": "Care-burden status per region",
        },
        "documentation": "/docs",
    }


@app.get("/health")
def health(session: Session = Depends(get_db)):
    """Health check: database reachability and row counts."""
    if not check_connection(session):
        return {"status": "degraded", "database": False}
    return {"status": "healthy", "database": True, "tables": get_table_counts(session)}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
