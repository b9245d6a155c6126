from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: a person with an account (ADMIN or PERSONNEL).

    Note: Plain data object, no DB access. Accounts are deactivated, never deleted.
    """

    user_id: int
    name: str
    email: str
    password_hash: str
    role: Role
    personnel_type_id: Optional[int]
    is_active: bool = True

    @property
    def is_personnel(self) -> bool:
        return self.role == Role.PERSONNEL

    def to_public_dict(self) -> dict:
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "personnelTypeId": self.personnel_type_id,
            "isActive": self.is_active,
        }
