"""
Application services for business logic.

This module contains scheduled jobs and cross-cutting services.
"""

from app.services.progressive_notifications import (
    PROGRESSIVE_STAGES,
    TEMPLATE_MAP,
    NotificationJobResult,
    run_progressive_notifications,
)

__all__ = [
    "PROGRESSIVE_STAGES",
    "TEMPLATE_MAP",
    "NotificationJobResult",
    "run_progressive_notifications",
]
