from __future__ import annotations

from typing import Any

from sqlalchemy import func
from sqlmodel import Session, col, select


def next_number(session: Session, column: Any, prefix: str, year: int) -> str:
    """Next ``<PREFIX>-<year>-<seq:04d>`` value for a numbered column."""
    stem = f"{prefix}-{year}-"
    # longer sequence strings sort after shorter ones once past 9999
    latest = session.exec(
        select(col(column))
        .where(col(column).like(f"{stem}%"))
        .order_by(func.length(col(column)).desc(), col(column).desc())
        .limit(1)
    ).first()
    sequence = 1
    if latest:
        try:
            sequence = int(str(latest).rsplit("-", 1)[1]) + 1
        except (IndexError, ValueError):
            sequence = 1
    return f"{stem}{sequence:04d}"
