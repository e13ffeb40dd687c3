from datetime import datetime, timezone
from typing import Any, Callable, Optional, Sequence

from sqlalchemy import Select
from sqlalchemy.orm import Session

from app.database import as_utc

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50


class CursorError(ValueError):
    pass


def parse_limit(raw: Optional[str]) -> int:
    """Page size from a query value: default 10, capped at 50."""
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return DEFAULT_PAGE_SIZE
    if value < 1:
        return DEFAULT_PAGE_SIZE
    return min(value, MAX_PAGE_SIZE)


def parse_cursor(raw: Optional[str]) -> Optional[datetime]:
    if raw is None or not raw.strip():
        return None
    # A literal "+" in the offset arrives as a space when the client skips encoding.
    cleaned = raw.strip().replace(" ", "+").replace("Z", "+00:00")
    try:
        value = datetime.fromisoformat(cleaned)
    except ValueError as exc:
        raise CursorError("Invalid cursor") from exc
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def encode_cursor(value: datetime) -> str:
    return as_utc(value).isoformat()


def fetch_page(
    session: Session,
    stmt: Select,
    column: Any,
    limit: int,
    cursor: Optional[datetime],
    created_at_of: Callable[[Any], datetime],
) -> tuple[Sequence[Any], Optional[str]]:
    """Run ``stmt`` newest-first as one cursor page.

    The returned cursor is the last row's ``created_at`` and is only set when
    at least one row is strictly older than it.
    """
    if cursor is not None:
        stmt = stmt.where(column < cursor)
    rows = session.execute(stmt.order_by(column.desc()).limit(limit + 1)).all()
    page = rows[:limit]
    if len(rows) <= limit or not page:
        return page, None

    last_created = as_utc(created_at_of(page[-1]))
    if as_utc(created_at_of(rows[limit])) < last_created:
        return page, encode_cursor(last_created)

    # The extra row ties with the last one; look past the tie.
    older = session.execute(stmt.where(column < last_created).limit(1)).first()
    return page, encode_cursor(last_created) if older is not None else None
