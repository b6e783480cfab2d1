import logging
from datetime import date, datetime, timedelta
from typing import Any, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from skillbridge.core.database import utcnow
from skillbridge.core.pagination import clamp_int
from skillbridge.models.booking import Booking
from skillbridge.models.category import Category
from skillbridge.models.review import Review
from skillbridge.models.student_profile import Student
from skillbridge.models.tutor_profile import Tutor
from skillbridge.models.user import User
from skillbridge.schemas.analytics import (
    AnalyticsOut,
    AnalyticsQuery,
    BookingBreakdown,
    BookingStatusCount,
    DateRange,
    DayCount,
    RoleCount,
    StatusCount,
    TopTutor,
    TopTutorSummary,
    TopTutorUser,
    Totals,
    UserBreakdown,
)
from skillbridge.schemas.category import CategoryOut
from skillbridge.schemas.profile import RatingStats

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = timedelta(days=30)
DEFAULT_TOP_TUTORS = 5
MAX_TOP_TUTORS = 20


def resolve_window(date_from: Optional[datetime], date_to: Optional[datetime]) -> DateRange:
    """Fill in the analytics window: ``to`` defaults to now, ``from`` to 30 days before ``to``"""
    date_to = date_to or utcnow()
    date_from = date_from or (date_to - DEFAULT_WINDOW)
    return DateRange(date_from=date_from, date_to=date_to)


def clamp_top_tutors(value: Any) -> int:
    return clamp_int(value, DEFAULT_TOP_TUTORS, 1, MAX_TOP_TUTORS)


def _as_day(value) -> date:
    # date() comes back as text on SQLite and as a date on PostgreSQL
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


class AnalyticsService:
    """Dashboard figures for admins"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _count(self, model) -> int:
        return (await self.db.execute(select(func.count()).select_from(model))).scalar_one()

    async def _grouped(self, column) -> list:
        result = await self.db.execute(select(column, func.count()).group_by(column).order_by(column.asc()))
        return result.all()

    async def get_analytics(self, query: AnalyticsQuery) -> AnalyticsOut:
        window = resolve_window(query.date_from, query.date_to)
        top_limit = clamp_top_tutors(query.top_tutors_limit)

        totals = Totals(
            users=await self._count(User),
            students=await self._count(Student),
            tutors=await self._count(Tutor),
            categories=await self._count(Category),
            bookings=await self._count(Booking),
            reviews=await self._count(Review),
        )

        users = UserBreakdown(
            by_role=[RoleCount(role=role, count=count) for role, count in await self._grouped(User.role)],
            by_status=[StatusCount(status=status, count=count) for status, count in await self._grouped(User.status)],
        )

        day = func.date(Booking.date)
        per_day = await self.db.execute(
            select(day.label("day"), func.count().label("count"))
            .where(Booking.date >= window.date_from, Booking.date <= window.date_to)
            .group_by(day)
            .order_by(day.asc())
        )
        bookings = BookingBreakdown(
            by_status=[
                BookingStatusCount(status=status, count=count)
                for status, count in await self._grouped(Booking.status)
            ],
            per_day=[DayCount(day=_as_day(row.day), count=row.count) for row in per_day.all()],
        )

        rating_row = (await self.db.execute(select(func.avg(Review.rating), func.count(Review.review_id)))).one()
        reviews = RatingStats(average_rating=float(rating_row[0] or 0), count=rating_row[1])

        top_tutors = await self._top_tutors(top_limit)

        logger.debug(f"Analytics computed for {window.date_from.isoformat()}..{window.date_to.isoformat()}")
        return AnalyticsOut(
            range=window,
            totals=totals,
            users=users,
            bookings=bookings,
            reviews=reviews,
            top_tutors=top_tutors,
        )

    async def _top_tutors(self, limit: int) -> List[TopTutor]:
        avg_rating = func.avg(Review.rating)
        reviews_count = func.count(Review.review_id)
        ranked = await self.db.execute(
            select(Review.tutor_id, avg_rating.label("avg_rating"), reviews_count.label("reviews_count"))
            .group_by(Review.tutor_id)
            .order_by(avg_rating.desc(), reviews_count.desc())
            .limit(limit)
        )
        ranked = ranked.all()
        if not ranked:
            return []

        tutors = await self.db.execute(
            select(Tutor)
            .where(Tutor.tutor_id.in_([row.tutor_id for row in ranked]))
            .options(selectinload(Tutor.user), selectinload(Tutor.category))
        )
        by_id = {tutor.tutor_id: tutor for tutor in tutors.scalars().all()}

        top = []
        for row in ranked:
            tutor = by_id.get(row.tutor_id)
            summary = None
            if tutor is not None:
                summary = TopTutorSummary(
                    subject=tutor.subject,
                    group=tutor.group,
                    price_per_day=tutor.price_per_day,
                    is_featured=tutor.is_featured,
                    is_available=tutor.is_available,
                    category=CategoryOut.model_validate(tutor.category) if tutor.category else None,
                    user=TopTutorUser(
                        id=tutor.user.id,
                        name=tutor.user.name,
                        email=tutor.user.email,
                        status=tutor.user.status,
                        role=tutor.user.role,
                    ),
                )
            top.append(
                TopTutor(
                    tutor_id=row.tutor_id,
                    avg_rating=float(row.avg_rating or 0),
                    reviews_count=row.reviews_count,
                    tutor=summary,
                )
            )
        return top
