"""Shared FastAPI dependencies."""

from __future__ import annotations

from src.core.clock import Clock

_clock = Clock()


def get_clock() -> Clock:
    """Clock dependency; tests override it with a FixedClock."""
    return _clock
