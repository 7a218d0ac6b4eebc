"""Routes package for FastAPI endpoints."""

from survey_data.routes import audit_logs, connections, health, responses, surveys

__all__ = ["audit_logs", "connections", "health", "responses", "surveys"]
