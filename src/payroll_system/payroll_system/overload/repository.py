from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from .model import OverloadPay


class OverloadPayRepository(Protocol):
    def create(self, *, user_id: int, amount: Decimal, notes: Optional[str], applied_at: datetime) -> int:
        raise NotImplementedError

    def list_overload_pays(self, *, archived: bool = False, user_id: Optional[int] = None) -> Sequence[OverloadPay]:
        raise NotImplementedError

    def list_live_for_user_between(self, user_id: int, start: datetime, end: datetime) -> Sequence[OverloadPay]:
        raise NotImplementedError

    def archive(self, overload_id: int, *, archived_at: datetime) -> bool:
        raise NotImplementedError
