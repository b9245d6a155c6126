from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.money import to_money
from ..common.validators import require_decimal, require_min_length, require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, NotFoundError, ValidationError
from .model import User
from .personnel_type_model import PersonnelType
from .personnel_type_repository import PersonnelTypeRepository
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    name: str
    email: str
    role: Role


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder or corrupted hashes
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        return SessionUser(user_id=user.user_id, name=user.name, email=user.email, role=user.role)


class UserService:
    """Use case: manage accounts (admin)."""

    def __init__(self, users: UserRepository, personnel_types: PersonnelTypeRepository):
        self._users = users
        self._types = personnel_types

    def _require_type(self, personnel_type_id: Optional[int]) -> Optional[int]:
        if personnel_type_id in (None, "", 0):
            return None
        ptype = self._types.get_by_id(int(personnel_type_id))
        if not ptype:
            raise ValidationError("Personnel type does not exist")
        if not ptype.is_active:
            raise ValidationError("Personnel type is inactive")
        return ptype.personnel_type_id

    def create_personnel(
        self,
        *,
        name: str,
        email: str,
        password: str,
        personnel_type_id: Optional[int],
    ) -> int:
        name = require_non_empty(name, "Name")
        email = require_non_empty(email, "Email").lower()
        if "@" not in email:
            raise ValidationError("Email is invalid")
        require_min_length(password, "Password", 6)

        if self._users.get_by_email(email):
            raise ValidationError("Email is already registered")

        user_id = self._users.create_user(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=Role.PERSONNEL,
            personnel_type_id=self._require_type(personnel_type_id),
        )
        logger.info("Created personnel account %s (%s)", user_id, email)
        return user_id

    def get(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_profile(self, user_id: int, *, name: str, personnel_type_id: Optional[int]) -> None:
        user = self.get(user_id)
        name = require_non_empty(name, "Name")
        self._users.update_profile(user.user_id, name=name, personnel_type_id=self._require_type(personnel_type_id))

    def deactivate(self, user_id: int) -> None:
        user = self.get(user_id)
        if user.role == Role.ADMIN:
            raise ValidationError("Admin accounts cannot be deactivated")
        self._users.set_active(user.user_id, is_active=False)
        logger.info("Deactivated user %s", user.user_id)

    def list_users(self, *, role: Optional[Role] = None) -> Sequence[User]:
        return self._users.list_all(role=role)

    def monthly_salary(self, user: User) -> Decimal:
        """Monthly basic salary of the user's personnel type; 0 when none is assigned."""
        ptype = self.personnel_type_of(user)
        return ptype.basic_salary if ptype else Decimal("0")

    def personnel_type_of(self, user: User) -> Optional[PersonnelType]:
        if not user.personnel_type_id:
            return None
        return self._types.get_by_id(int(user.personnel_type_id))


class PersonnelTypeService:
    def __init__(self, personnel_types: PersonnelTypeRepository):
        self._types = personnel_types

    def list_all(self) -> Sequence[PersonnelType]:
        return self._types.list_all()

    def create(self, *, name: str, basic_salary) -> int:
        name = require_non_empty(name, "Name")
        salary = to_money(require_decimal(basic_salary, "Basic salary"))
        if self._types.get_by_name(name):
            raise ValidationError("Personnel type already exists")
        return self._types.create(name=name, basic_salary=salary)

    def update(self, personnel_type_id: int, *, name: Optional[str] = None, basic_salary=None) -> None:
        ptype = self._types.get_by_id(int(personnel_type_id))
        if not ptype:
            raise NotFoundError("Personnel type not found")
        new_name = require_non_empty(name, "Name") if name is not None else ptype.name
        salary = to_money(require_decimal(basic_salary, "Basic salary")) if basic_salary is not None else ptype.basic_salary
        self._types.update(ptype.personnel_type_id, name=new_name, basic_salary=salary)
        logger.info("Updated personnel type %s salary=%s", ptype.personnel_type_id, salary)

    def deactivate(self, personnel_type_id: int) -> None:
        ptype = self._types.get_by_id(int(personnel_type_id))
        if not ptype:
            raise NotFoundError("Personnel type not found")
        self._types.set_active(ptype.personnel_type_id, is_active=False)
