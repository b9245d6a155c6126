from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import CalculationType
from .model import Deduction, DeductionType


class DeductionTypeRepository(Protocol):
    def get_by_id(self, deduction_type_id: int) -> Optional[DeductionType]:
        raise NotImplementedError

    def get_by_name(self, name: str) -> Optional[DeductionType]:
        raise NotImplementedError

    def list_all(self, *, active_only: bool = False) -> Sequence[DeductionType]:
        raise NotImplementedError

    def create(
        self,
        *,
        name: str,
        description: Optional[str],
        calculation_type: CalculationType,
        amount: Decimal,
        percentage_value: Optional[Decimal],
        is_mandatory: bool,
    ) -> int:
        raise NotImplementedError

    def update(self, deduction_type: DeductionType) -> bool:
        raise NotImplementedError


class DeductionRepository(Protocol):
    def get_by_id(self, deduction_id: int) -> Optional[Deduction]:
        raise NotImplementedError

    def create(
        self,
        *,
        user_id: int,
        deduction_type_id: int,
        amount: Decimal,
        notes: Optional[str],
        applied_at: datetime,
    ) -> int:
        raise NotImplementedError

    def list_live_for_user_between(self, user_id: int, start: datetime, end: datetime) -> Sequence[Deduction]:
        """Non-archived deductions with start <= applied_at <= end."""

        raise NotImplementedError

    def list_deductions(self, *, archived: bool = False, user_id: Optional[int] = None) -> Sequence[Deduction]:
        raise NotImplementedError

    def has_live_of_type(self, user_id: int, deduction_type_id: int) -> bool:
        raise NotImplementedError

    def update_amount(self, deduction_id: int, amount: Decimal) -> bool:
        raise NotImplementedError

    def archive(self, deduction_id: int, *, archived_at: datetime) -> bool:
        raise NotImplementedError
