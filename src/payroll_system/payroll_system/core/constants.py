"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_TIMEZONE = "Asia/Manila"
DEFAULT_HISTORY_LIMIT = 30
DEFAULT_SESSION_DAYS = 7

# Attendance window defaults applied when the settings row is first created.
DEFAULT_TIME_IN_START = "07:00"
DEFAULT_TIME_IN_END = "09:00"
DEFAULT_TIME_OUT_START = "17:00"
DEFAULT_TIME_OUT_END = "19:00"

STANDARD_WORK_HOURS = 8
MAX_LATE_DEDUCTION_RATIO = "0.5"
SEMI_MONTHLY_DIVISOR = 2
DEFAULT_PERIOD_DAYS = 15

# Deduction types whose name contains one of these are attendance penalties.
# They are derived from attendance records, so stored rows are never summed.
RESERVED_ATTENDANCE_DEDUCTION_NAMES = ("Late", "Absent", "Early", "Partial", "Tardiness")

AUTO_SYNC_NOTE = "Mandatory payroll deduction (auto-synced)"
