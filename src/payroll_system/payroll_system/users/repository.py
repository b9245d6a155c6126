from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        personnel_type_id: Optional[int],
    ) -> int:
        raise NotImplementedError

    def update_profile(self, user_id: int, *, name: str, personnel_type_id: Optional[int]) -> bool:
        raise NotImplementedError

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def list_all(self, *, role: Optional[Role] = None) -> Sequence[User]:
        raise NotImplementedError

    def list_active_personnel(self) -> Sequence[User]:
        raise NotImplementedError
