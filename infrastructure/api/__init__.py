"""FastAPI service for the survey dashboard."""
