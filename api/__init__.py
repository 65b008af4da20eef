"""API Package.

FastAPI server for the AyurTrace regulator dashboard.
"""

from api.server import create_app

__all__ = [
    "create_app",
]
