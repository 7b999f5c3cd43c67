from __future__ import annotations

from typing import Optional, Protocol, Sequence, Set

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for accounts and their roles.

    Services depend on this protocol, not on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def get_roles(self, user_id: int) -> Set[Role]:
        raise NotImplementedError

    def create_with_role(
        self,
        *,
        email: str,
        full_name: str,
        phone_number: str,
        password_hash: str,
        role: Role,
    ) -> int:
        """Insert the account and its role atomically.

        If the role cannot be stored the account must not remain.
        """

        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError

    def list_by_role(self, role: Role) -> Sequence[User]:
        raise NotImplementedError
