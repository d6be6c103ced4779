"""User registration."""

from src.users.user_service import register_user

__all__ = ["register_user"]
