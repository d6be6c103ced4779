"""Track and track item management."""

from src.tracks.track_service import TrackItemInput, TrackService, TrackUpdate

__all__ = ["TrackService", "TrackItemInput", "TrackUpdate"]
