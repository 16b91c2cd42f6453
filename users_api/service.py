"""Business rules for creating, changing and querying users."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Callable, List

from .models import User, UserDetails
from .repository import UserRepository

DEFAULT_MIN_USER_AGE = 18

_USER_NOT_FOUND = "User not found."


class UserServiceError(Exception):
    """Base class for failures reported by :class:`UserService`."""


class InvalidInputError(UserServiceError, ValueError):
    """Raised when a request breaks one of the service's business rules."""


class UserNotFoundError(UserServiceError, LookupError):
    """Raised when an operation targets an unknown user identifier."""

    def __init__(self, message: str = _USER_NOT_FOUND) -> None:
        super().__init__(message)


def age_in_years(birth_date: date, today: date) -> int:
    """Return the number of full years between ``birth_date`` and ``today``."""

    years = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        years -= 1
    return years


class UserService:
    """Validate requests and apply them to a :class:`UserRepository`."""

    def __init__(
        self,
        repository: UserRepository,
        *,
        min_age: int = DEFAULT_MIN_USER_AGE,
        today: Callable[[], date] = date.today,
    ) -> None:
        if min_age < 0:
            raise ValueError("min_age must not be negative")
        self._repository = repository
        self._min_age = min_age
        self._today = today

    @property
    def min_age(self) -> int:
        return self._min_age

    def create_user(self, details: UserDetails) -> User:
        """Store a new user once their birth date satisfies the minimum age."""

        if age_in_years(details.birth_date, self._today()) < self._min_age:
            raise InvalidInputError("Invalid birth date")
        return self._repository.insert(details)

    def get_user(self, user_id: str) -> User:
        user = self._repository.find_by_id(user_id)
        if user is None:
            raise UserNotFoundError()
        return user

    def rename_user(self, user_id: str, first_name: str, last_name: str) -> None:
        """Change only the first and last name of an existing user."""

        user = self.get_user(user_id)
        renamed = replace(user, first_name=first_name, last_name=last_name)
        if not self._repository.update(renamed):
            raise UserNotFoundError()

    def replace_user(self, user_id: str, details: UserDetails) -> User:
        """Overwrite every field of an existing user, keeping its identifier."""

        replacement = User.from_details(user_id, details)
        if not self._repository.update(replacement):
            raise UserNotFoundError()
        return replacement

    def delete_user(self, user_id: str) -> None:
        if not self._repository.delete_by_id(user_id):
            raise UserNotFoundError()

    def find_users_by_birth_date(self, start: date, end: date) -> List[User]:
        """Return users born within ``[start, end]``."""

        if start > end:
            raise InvalidInputError("'from' date range must be before 'to'.")
        return self._repository.scan_by_date_range(start, end)


__all__ = [
    "DEFAULT_MIN_USER_AGE",
    "InvalidInputError",
    "UserNotFoundError",
    "UserService",
    "UserServiceError",
    "age_in_years",
]
