"""Core of the users service: in-memory storage and business rules."""

from __future__ import annotations

from typing import Any

from .models import User, UserDetails
from .repository import UserRepository
from .service import InvalidInputError, UserNotFoundError, UserService, UserServiceError


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the HTTP application."""

    from .api import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "InvalidInputError",
    "User",
    "UserDetails",
    "UserNotFoundError",
    "UserRepository",
    "UserService",
    "UserServiceError",
    "create_app",
]
