"""Offset pagination and substring search helpers for service queries."""
from typing import List, Sequence, Tuple, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")

LIKE_ESCAPE = "\\"


def contains_pattern(text: str) -> str:
    """Build an ``ILIKE`` pattern matching ``text`` as a literal substring."""
    escaped = (
        text.strip()
        .replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


async def count_rows(db: AsyncSession, query: Select) -> int:
    """Count the rows ``query`` would return, ignoring its ordering."""
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    result = await db.execute(count_query)
    return result.scalar_one()


async def paginate(
    db: AsyncSession,
    query: Select,
    offset: int,
    limit: int,
) -> Tuple[List, int]:
    """Run ``query`` for one page and return ``(items, total)``."""
    total = await count_rows(db, query)
    result = await db.execute(query.offset(offset).limit(limit))
    items: Sequence = result.scalars().all()
    return list(items), total
