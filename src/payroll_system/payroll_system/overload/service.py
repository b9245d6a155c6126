from __future__ import annotations

import logging
from datetime import datetime, time
from typing import Any, Iterable, Optional, Sequence

from ..common.datetime_utils import Period, now_local
from ..common.money import to_money
from ..common.validators import require_decimal, require_int
from ..core.constants import DEFAULT_TIMEZONE
from ..core.exceptions import NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import OverloadPay
from .repository import OverloadPayRepository

logger = logging.getLogger(__name__)


class OverloadPayService:
    def __init__(self, overloads: OverloadPayRepository, users: UserRepository, *, tz_name: str = DEFAULT_TIMEZONE):
        self._overloads = overloads
        self._users = users
        self._tz_name = tz_name

    def add(
        self,
        *,
        amount: Any,
        user_ids: Optional[Iterable[Any]] = None,
        all_personnel: bool = False,
        notes: Optional[str] = None,
        applied_at: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> list[int]:
        """Add the same overload amount to several users, or to every active personnel."""
        value = to_money(require_decimal(amount, "amount", allow_zero=False))

        if all_personnel:
            targets = [u.user_id for u in self._users.list_active_personnel()]
        else:
            targets = []
            for raw in user_ids or []:
                uid = require_int(raw, "user_id")
                user = self._users.get_by_id(uid)
                if not user or not user.is_active:
                    raise NotFoundError(f"User {uid} not found or inactive")
                targets.append(uid)
        if not targets:
            raise ValidationError("Select at least one user")

        when = applied_at or now or now_local(self._tz_name)
        note = (notes or "").strip() or None
        ids = [self._overloads.create(user_id=uid, amount=value, notes=note, applied_at=when) for uid in targets]
        logger.info("Added overload pay %s to %s user(s)", value, len(ids))
        return ids

    def archive(self, overload_id: int, *, now: Optional[datetime] = None) -> None:
        if not self._overloads.archive(int(overload_id), archived_at=now or now_local(self._tz_name)):
            raise NotFoundError("Overload pay not found or already archived")
        logger.info("Archived overload pay %s", overload_id)

    def list_overload_pays(self, *, archived: bool = False, user_id: Optional[int] = None) -> Sequence[OverloadPay]:
        return self._overloads.list_overload_pays(archived=archived, user_id=user_id)

    def for_period(self, user_id: int, period: Period) -> Sequence[OverloadPay]:
        return self._overloads.list_live_for_user_between(
            int(user_id),
            datetime.combine(period.start, time.min),
            datetime.combine(period.end, time.max),
        )
