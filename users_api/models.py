"""Domain models for the users service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class UserDetails:
    """User fields supplied by a caller, before an identifier is assigned."""

    first_name: str
    last_name: str
    email: str
    birth_date: date
    address: Optional[str] = None
    phone_number: Optional[str] = None


@dataclass(frozen=True)
class User:
    """Represents a user record held by the repository."""

    id: str
    first_name: str
    last_name: str
    email: str
    birth_date: date
    address: Optional[str] = None
    phone_number: Optional[str] = None

    @classmethod
    def from_details(cls, user_id: str, details: UserDetails) -> "User":
        return cls(
            id=user_id,
            first_name=details.first_name,
            last_name=details.last_name,
            email=details.email,
            birth_date=details.birth_date,
            address=details.address,
            phone_number=details.phone_number,
        )


__all__ = ["User", "UserDetails"]
