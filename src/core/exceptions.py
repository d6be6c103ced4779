"""
Domain errors for mission assembly and settlement.

Callers distinguish the taxonomy by class:
- NotFoundError: a referenced user, track, task or mission does not exist
- ConflictError: the operation collides with existing state (not retried)
- InvalidInputError: the request itself is malformed

Storage failures are left as SQLAlchemy errors; they are the retryable kind.
"""

from __future__ import annotations


class MasteryFlowError(Exception):
    """Base class for all domain errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(MasteryFlowError):
    """Raised when a referenced record does not exist."""

    def __init__(self, entity: str, entity_id: object):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(MasteryFlowError):
    """Raised when an operation conflicts with existing state."""
    pass


class MissionAlreadyExistsError(ConflictError):
    """Raised when a daily mission already exists for the user and date."""

    def __init__(self, user_id: object, mission_date: object):
        super().__init__(f"Mission already exists for user {user_id} on {mission_date}")
        self.user_id = user_id
        self.mission_date = mission_date


class TaskAlreadyCompletedError(ConflictError):
    """Raised when settling a task that is already completed."""

    def __init__(self, task_id: object):
        super().__init__(f"Task already completed: {task_id}")
        self.task_id = task_id


class InvalidInputError(MasteryFlowError):
    """Raised when request data is missing or out of range."""
    pass
