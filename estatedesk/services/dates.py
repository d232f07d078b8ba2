from __future__ import annotations

import calendar
from datetime import date


def add_months(value: date, months: int) -> date:
    """Shift a date by whole months, clamping to the last day of the target month."""
    if months == 0:
        return value
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)
