"""Collection scheduler settings"""

from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Tuple


@dataclass(frozen=True)
class ReminderConfig:
    """
    Settings for one collection run

    Passed to the scheduler at construction so each owner could carry its
    own policy.
    """

    days_before_due: int = 3
    escalation_days: Tuple[int, ...] = (1, 7, 14, 30)
    due_soon_window: timedelta = timedelta(hours=24)
    overdue_window: timedelta = timedelta(hours=48)
    late_fee_percent: Decimal = Decimal("0")
    late_fee_cap: Decimal = Decimal("5000")
    grace_period_days: int = 3
    hard_overdue_days: int = 60

    @property
    def late_fee_enabled(self) -> bool:
        return self.late_fee_percent > 0

    @classmethod
    def from_config(cls, config) -> "ReminderConfig":
        """Build from ApplicationConfig-style attributes"""
        return cls(
            days_before_due=int(config.REMINDER_DAYS_BEFORE_DUE),
            escalation_days=tuple(sorted(int(d) for d in config.REMINDER_ESCALATION_DAYS)),
            due_soon_window=timedelta(hours=config.REMINDER_DUE_SOON_WINDOW_HOURS),
            overdue_window=timedelta(hours=config.REMINDER_OVERDUE_WINDOW_HOURS),
            late_fee_percent=Decimal(str(config.LATE_FEE_PERCENT)),
            late_fee_cap=Decimal(str(config.LATE_FEE_CAP)),
            grace_period_days=int(config.LATE_FEE_GRACE_DAYS),
            hard_overdue_days=int(config.OVERDUE_HARD_THRESHOLD_DAYS),
        )
