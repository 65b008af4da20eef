"""API Routes Package."""

from api.routes import health, auth, dashboard, batches, alerts, recalls, actions

__all__ = [
    "health",
    "auth",
    "dashboard",
    "batches",
    "alerts",
    "recalls",
    "actions",
]
