from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class User:
    """Domain entity: an account profile.

    Roles live in their own table; see UserRepository.get_roles.
    """

    user_id: int
    email: str
    full_name: str
    phone_number: str
    password_hash: str
    is_active: bool = True

    def to_public_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "full_name": self.full_name,
            "phone_number": self.phone_number,
            "is_active": self.is_active,
        }
