from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_email, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import ROLE_PRIORITY, Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


def effective_role(roles: Iterable[Role]) -> Role:
    """Highest-privilege role held; users without a role row are customers."""

    held = set(roles)
    for role in ROLE_PRIORITY:
        if role in held:
            return role
    return Role.CUSTOMER


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    full_name: str
    email: str
    role: Role

    def to_dict(self) -> dict:
        return {"user_id": self.user_id, "full_name": self.full_name, "email": self.email, "role": self.role.value}


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        email = (email or "").strip().lower()
        if not email or not password:
            raise AuthenticationError("Invalid email or password")

        user = self._users.get_by_email(email)
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password)
        except ValueError:
            # e.g. placeholder or corrupted hashes
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        return self._to_session_user(user)

    def load_session_user(self, user_id: int) -> SessionUser:
        user = self._users.get_by_id(int(user_id))
        if not user or not user.is_active:
            raise AuthenticationError("Session expired, please log in again")
        return self._to_session_user(user)

    def _to_session_user(self, user: User) -> SessionUser:
        role = effective_role(self._users.get_roles(user.user_id))
        return SessionUser(user_id=user.user_id, full_name=user.full_name, email=user.email, role=role)


class StaffAccountService:
    """Use case: admin manages staff accounts."""

    def __init__(self, users: UserRepository):
        self._users = users

    def create_staff(
        self,
        *,
        current_role: Role,
        email: str,
        password: str,
        full_name: str,
        phone_number: str,
    ) -> User:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Forbidden: Admin access required")

        if not email or not password or not full_name or not phone_number:
            raise ValidationError("Missing required fields")

        email = require_email(email)
        full_name = require_non_empty(full_name, "Full name")
        phone_number = require_non_empty(phone_number, "Phone number")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        if self._users.get_by_email(email):
            raise ValidationError("A user with this email address already exists")

        try:
            user_id = self._users.create_with_role(
                email=email,
                full_name=full_name,
                phone_number=phone_number,
                password_hash=generate_password_hash(password),
                role=Role.STAFF,
            )
        except DomainError:
            raise
        except Exception as e:
            logger.exception("staff account creation rolled back")
            raise StorageError(f"Failed to assign role: {e}") from e

        logger.info("staff account created", extra={"user_id": user_id})
        return User(
            user_id=user_id,
            email=email,
            full_name=full_name,
            phone_number=phone_number,
            password_hash="",
            is_active=True,
        )

    def list_staff(self, *, current_role: Role) -> Sequence[User]:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Forbidden: Admin access required")
        return self._users.list_by_role(Role.STAFF)

    def delete_staff(self, *, current_role: Role, user_id: int) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Forbidden: Admin access required")

        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("Staff member not found")
        roles = self._users.get_roles(user.user_id)
        if Role.ADMIN in roles:
            raise ValidationError("Admin accounts cannot be deleted")
        if Role.STAFF not in roles:
            raise ValidationError("User is not a staff member")

        if not self._users.delete_by_id(user.user_id):
            raise ValidationError("Failed to delete staff member")
        logger.info("staff account deleted", extra={"user_id": user.user_id})
