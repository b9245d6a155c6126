from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class PersonnelType:
    """Salary class; `basic_salary` is monthly."""

    personnel_type_id: int
    name: str
    basic_salary: Decimal
    is_active: bool = True
