from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    ADMIN = "ADMIN"
    PERSONNEL = "PERSONNEL"


class AttendanceStatus(str, Enum):
    """Normalized daily attendance status stored in the database."""

    PENDING = "PENDING"
    PRESENT = "PRESENT"
    LATE = "LATE"
    PARTIAL = "PARTIAL"
    ABSENT = "ABSENT"
    ON_LEAVE = "ON_LEAVE"


class PayrollStatus(str, Enum):
    """Payroll entry lifecycle: PENDING -> RELEASED -> ARCHIVED."""

    PENDING = "PENDING"
    RELEASED = "RELEASED"
    ARCHIVED = "ARCHIVED"


class CalculationType(str, Enum):
    FIXED = "FIXED"
    PERCENTAGE = "PERCENTAGE"


class LoanStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PAID = "PAID"


class LeaveType(str, Enum):
    ANNUAL = "ANNUAL"
    SICK = "SICK"
    UNPAID = "UNPAID"


class LeaveStatus(str, Enum):
    """Leave request approval flow."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DENIED = "DENIED"
