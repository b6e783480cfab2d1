import logging
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from skillbridge.core.exceptions import ConflictError, NotFoundError, profile_not_found
from skillbridge.core.pagination import (
    Page,
    date_range,
    normalize_pagination,
    number_range,
    paginate,
    where_all,
)
from skillbridge.models.booking import Booking, BookingStatus
from skillbridge.models.category import Category
from skillbridge.models.review import Review
from skillbridge.models.student_profile import Student
from skillbridge.models.tutor_profile import Tutor
from skillbridge.models.user import User
from skillbridge.schemas.booking import BookingFilters
from skillbridge.schemas.profile import DashboardStats, RatingStats, SessionCounts
from skillbridge.schemas.review import ReviewFilters
from skillbridge.schemas.tutor import AvailabilityUpdate, TutorProfilePatch, TutorProfileUpsert
from skillbridge.services.bookings import (
    booking_detail_options,
    load_booking,
    summarize_ratings,
    transition_booking,
)
from skillbridge.services.category_service import CategoryService

logger = logging.getLogger(__name__)

RECENT_ITEMS = 5


def _review_options() -> list:
    return [
        selectinload(Review.student).selectinload(Student.user),
        selectinload(Review.booking),
    ]


def student_search(term: Optional[str]):
    """Match bookings whose student's user name or email contains ``term``"""
    term = term.strip() if term else ""
    if not term:
        return None
    return Booking.student.has(
        Student.user.has(
            or_(
                User.name.icontains(term, autoescape=True),
                User.email.icontains(term, autoescape=True),
            )
        )
    )


def apply_availability(tutor: Tutor, data: AvailabilityUpdate) -> None:
    """Set ``is_available`` and the window fields the caller sent"""
    tutor.is_available = data.is_available
    if data.is_set("available_from"):
        tutor.available_from = data.available_from
    if data.is_set("available_to"):
        tutor.available_to = data.available_to


class TutorService:
    """Tutor-facing operations: profile, availability, sessions and reviews"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _require_tutor_id(self, user_id: str) -> str:
        tutor_id = await self.db.scalar(select(Tutor.tutor_id).where(Tutor.user_id == user_id))
        if tutor_id is None:
            raise profile_not_found("Tutor")
        return tutor_id

    async def _load_profile(self, user_id: str) -> Optional[Tutor]:
        result = await self.db.execute(
            select(Tutor)
            .where(Tutor.user_id == user_id)
            .options(
                selectinload(Tutor.user),
                selectinload(Tutor.category),
                selectinload(Tutor.reviews),
            )
            .execution_options(populate_existing=True)
        )
        tutor = result.scalar_one_or_none()
        if tutor is not None:
            summary = summarize_ratings(review.rating for review in tutor.reviews)
            tutor.avg_rating = summary.avg_rating
            tutor.reviews_count = summary.reviews_count
        return tutor

    # -------------------------
    # Profile
    # -------------------------

    async def get_profile(self, user_id: str) -> Tutor:
        tutor = await self._load_profile(user_id)
        if tutor is None:
            raise profile_not_found("Tutor")

        sessions = await self.db.execute(
            select(Booking)
            .where(Booking.tutor_id == tutor.tutor_id)
            .order_by(Booking.created_at.desc())
            .limit(RECENT_ITEMS)
            .options(*booking_detail_options())
        )
        reviews = await self.db.execute(
            select(Review)
            .where(Review.tutor_id == tutor.tutor_id)
            .order_by(Review.created_at.desc())
            .limit(RECENT_ITEMS)
            .options(*_review_options())
        )
        tutor.recent_sessions = list(sessions.scalars().all())
        tutor.recent_reviews = list(reviews.scalars().all())
        return tutor

    async def upsert_profile(self, user_id: str, data: TutorProfileUpsert) -> Tutor:
        await CategoryService(self.db).ensure_exists(data.category_id)

        tutor = await self.db.scalar(select(Tutor).where(Tutor.user_id == user_id).with_for_update())
        if tutor is None:
            tutor = Tutor(
                user_id=user_id,
                subject=data.subject,
                experience=data.experience,
                address=data.address,
                phone=data.phone,
                profile_pic=data.profile_pic,
                bio=data.bio,
                institute=data.institute,
                group=data.group,
                category_id=data.category_id,
                price_per_day=data.price_per_day,
            )
            self.db.add(tutor)
        else:
            for name in ("subject", "experience", "address", "phone", "group", "category_id", "price_per_day"):
                setattr(tutor, name, getattr(data, name))
            for name in ("profile_pic", "bio", "institute"):
                if data.is_set(name):
                    setattr(tutor, name, getattr(data, name))

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Tutor profile was created concurrently. Please retry.")
        return await self._load_profile(user_id)

    async def update_profile(self, user_id: str, data: TutorProfilePatch) -> Tutor:
        changes = data.changes()
        if "category_id" in changes:
            await CategoryService(self.db).ensure_exists(changes["category_id"])

        tutor = await self.db.scalar(select(Tutor).where(Tutor.user_id == user_id).with_for_update())
        if tutor is None:
            raise profile_not_found("Tutor")

        for name, value in changes.items():
            setattr(tutor, name, value)

        await self.db.commit()
        return await self._load_profile(user_id)

    async def set_availability(self, user_id: str, data: AvailabilityUpdate) -> Tutor:
        tutor = await self.db.scalar(select(Tutor).where(Tutor.user_id == user_id).with_for_update())
        if tutor is None:
            raise profile_not_found("Tutor")

        apply_availability(tutor, data)
        await self.db.commit()
        logger.info(f"Tutor {tutor.tutor_id} availability set to {data.is_available}")
        return await self._load_profile(user_id)

    async def list_categories(self) -> List[Category]:
        return await CategoryService(self.db).list_categories()

    # -------------------------
    # Sessions
    # -------------------------

    async def list_sessions(self, user_id: str, filters: BookingFilters) -> Page:
        tutor_id = await self._require_tutor_id(user_id)
        pagination = normalize_pagination(filters.page, filters.limit)

        stmt = (
            select(Booking)
            .where(
                Booking.tutor_id == tutor_id,
                *where_all(
                    Booking.status == filters.status if filters.status else None,
                    date_range(Booking.date, filters.date_from, filters.date_to),
                    student_search(filters.search),
                ),
            )
            .order_by(Booking.date.desc())
            .options(*booking_detail_options())
        )
        return await paginate(self.db, stmt, pagination)

    async def get_session(self, user_id: str, booking_id: str) -> Booking:
        tutor_id = await self._require_tutor_id(user_id)
        booking = await load_booking(self.db, booking_id, Booking.tutor_id == tutor_id)
        if booking is None:
            raise NotFoundError("Booking not found.")
        return booking

    async def complete_session(self, user_id: str, booking_id: str) -> Booking:
        tutor_id = await self._require_tutor_id(user_id)
        return await transition_booking(
            self.db,
            booking_id,
            Booking.tutor_id == tutor_id,
            BookingStatus.COMPLETED,
            "Only confirmed sessions can be marked completed.",
        )

    # -------------------------
    # Reviews & stats
    # -------------------------

    async def list_reviews(self, user_id: str, filters: ReviewFilters) -> Page:
        tutor_id = await self._require_tutor_id(user_id)
        pagination = normalize_pagination(filters.page, filters.limit)

        stmt = (
            select(Review)
            .where(
                Review.tutor_id == tutor_id,
                *where_all(number_range(Review.rating, filters.min_rating, filters.max_rating)),
            )
            .order_by(Review.created_at.desc())
            .options(*_review_options())
        )
        return await paginate(self.db, stmt, pagination)

    async def dashboard_stats(self, user_id: str) -> DashboardStats:
        tutor_id = await self._require_tutor_id(user_id)

        rows = await self.db.execute(
            select(Booking.status, func.count())
            .where(Booking.tutor_id == tutor_id)
            .group_by(Booking.status)
        )
        by_status = {status: count for status, count in rows.all()}

        ratings = await self.db.scalars(select(Review.rating).where(Review.tutor_id == tutor_id))
        summary = summarize_ratings(ratings.all())

        return DashboardStats(
            sessions=SessionCounts(
                total=sum(by_status.values()),
                confirmed=by_status.get(BookingStatus.CONFIRMED, 0),
                completed=by_status.get(BookingStatus.COMPLETED, 0),
                cancelled=by_status.get(BookingStatus.CANCELLED, 0),
            ),
            reviews=RatingStats(average_rating=summary.avg_rating, count=summary.reviews_count),
        )
