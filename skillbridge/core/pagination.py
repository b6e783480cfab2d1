"""Pagination and filter helpers shared by the list endpoints.

Raw query values are forgiving: anything that is not a finite number falls
back to the default page/limit. Filter builders return ``None`` when their
input is absent so that callers can drop them instead of producing an empty
(always-false) predicate.
"""
import math
from dataclasses import dataclass, asdict, field
from typing import Any, List, Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100
# Keeps (page - 1) * limit within a signed 64-bit OFFSET
MAX_PAGE = (2 ** 63 - 1) // MAX_LIMIT


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    skip: int


@dataclass(frozen=True)
class PageMeta:
    page: int
    limit: int
    total: int
    total_pages: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Page:
    meta: PageMeta
    data: List[Any] = field(default_factory=list)


def _floor_or_default(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return math.floor(number)


def clamp_int(value: Any, default: int, minimum: int, maximum: Optional[int] = None) -> int:
    """Floor ``value`` (or take ``default``) and keep it within ``[minimum, maximum]``"""
    number = max(minimum, _floor_or_default(value, default))
    if maximum is not None:
        number = min(maximum, number)
    return number


def normalize_pagination(page: Any = None, limit: Any = None) -> Pagination:
    page = clamp_int(page, DEFAULT_PAGE, 1, MAX_PAGE)
    limit = clamp_int(limit, DEFAULT_LIMIT, 1, MAX_LIMIT)
    return Pagination(page=page, limit=limit, skip=(page - 1) * limit)


def to_page_meta(pagination: Pagination, total: int) -> PageMeta:
    return PageMeta(
        page=pagination.page,
        limit=pagination.limit,
        total=total,
        total_pages=max(1, math.ceil(total / pagination.limit)),
    )


# -------------------------
# Filter builders
# -------------------------

def date_range(column, start=None, end=None):
    """Inclusive ``start <= column <= end``; either bound may be omitted"""
    clauses = []
    if start is not None:
        clauses.append(column >= start)
    if end is not None:
        clauses.append(column <= end)
    if not clauses:
        return None
    return and_(*clauses)


# Numeric bounds share the inclusive semantics of dates
number_range = date_range


def text_search(term: Optional[str], *columns):
    """Case-insensitive substring match of ``term`` against any of ``columns``"""
    term = term.strip() if term else ""
    if not term or not columns:
        return None
    return or_(*(column.icontains(term, autoescape=True) for column in columns))


def where_all(*clauses) -> list:
    return [clause for clause in clauses if clause is not None]


async def paginate(db: AsyncSession, stmt, pagination: Pagination) -> Page:
    """Run the count and the page fetch for ``stmt`` in the session's current transaction"""
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await db.execute(count_stmt)).scalar_one()
    result = await db.execute(stmt.offset(pagination.skip).limit(pagination.limit))
    rows = list(result.scalars().unique().all())
    return Page(meta=to_page_meta(pagination, total), data=rows)
