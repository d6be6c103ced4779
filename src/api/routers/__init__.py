"""API routers for masteryflow."""

from src.api.routers import (
    cron_router,
    missions_router,
    tracks_router,
    users_router,
)

__all__ = [
    "users_router",
    "tracks_router",
    "missions_router",
    "cron_router",
]
