from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class OverloadPay:
    """Additional pay (overtime or extra load) added to the basic salary of the period it is applied in."""

    overload_id: int
    user_id: int
    amount: Decimal
    notes: Optional[str]
    applied_at: datetime
    archived_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.overload_id,
            "userId": self.user_id,
            "amount": float(self.amount),
            "notes": self.notes,
            "appliedAt": self.applied_at.isoformat(),
            "archivedAt": self.archived_at.isoformat() if self.archived_at else None,
        }
