from __future__ import annotations

from decimal import Decimal
from typing import Optional, Protocol, Sequence

from .personnel_type_model import PersonnelType


class PersonnelTypeRepository(Protocol):
    def get_by_id(self, personnel_type_id: int) -> Optional[PersonnelType]:
        raise NotImplementedError

    def get_by_name(self, name: str) -> Optional[PersonnelType]:
        raise NotImplementedError

    def list_all(self) -> Sequence[PersonnelType]:
        raise NotImplementedError

    def create(self, *, name: str, basic_salary: Decimal) -> int:
        raise NotImplementedError

    def update(self, personnel_type_id: int, *, name: str, basic_salary: Decimal) -> bool:
        raise NotImplementedError

    def set_active(self, personnel_type_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError
