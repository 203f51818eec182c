"""API routes for the survey dashboard."""

from infrastructure.api.routes import care, surveys

__all__ = ["care", "surveys"]
