import logging
from typing import List, Optional

from sqlalchemy import select
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
    text_search,
    where_all,
)
from skillbridge.models.booking import Booking, BookingStatus
from skillbridge.models.category import Category
from skillbridge.models.review import Review
from skillbridge.models.student_profile import Group, Student
from skillbridge.models.tutor_profile import Tutor
from skillbridge.models.user import User
from skillbridge.schemas.booking import BookingCreate, BookingFilters
from skillbridge.schemas.review import ReviewCreate
from skillbridge.schemas.student import StudentProfilePatch, StudentProfileUpsert
from skillbridge.schemas.tutor import TutorBrowseFilters
from skillbridge.services.bookings import (
    booking_detail_options,
    load_booking,
    summarize_ratings,
    transition_booking,
)
from skillbridge.services.category_service import CategoryService

logger = logging.getLogger(__name__)

RECENT_ITEMS = 5


def _tutor_card_options() -> list:
    return [selectinload(Tutor.user), selectinload(Tutor.category)]


def _review_options() -> list:
    return [
        selectinload(Review.tutor).selectinload(Tutor.user),
        selectinload(Review.tutor).selectinload(Tutor.category),
        selectinload(Review.booking),
    ]


class StudentService:
    """Student-facing operations: profile, tutor browsing, bookings and reviews"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _require_student_id(self, user_id: str) -> str:
        student_id = await self.db.scalar(select(Student.student_id).where(Student.user_id == user_id))
        if student_id is None:
            raise profile_not_found("Student")
        return student_id

    async def _load_profile(self, user_id: str) -> Optional[Student]:
        result = await self.db.execute(
            select(Student)
            .where(Student.user_id == user_id)
            .options(selectinload(Student.user))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    # -------------------------
    # Profile
    # -------------------------

    async def get_profile(self, user_id: str) -> Student:
        student = await self._load_profile(user_id)
        if student is None:
            raise profile_not_found("Student")

        bookings = await self.db.execute(
            select(Booking)
            .where(Booking.student_id == student.student_id)
            .order_by(Booking.created_at.desc())
            .limit(RECENT_ITEMS)
            .options(*booking_detail_options())
        )
        reviews = await self.db.execute(
            select(Review)
            .where(Review.student_id == student.student_id)
            .order_by(Review.created_at.desc())
            .limit(RECENT_ITEMS)
            .options(*_review_options())
        )
        student.recent_bookings = list(bookings.scalars().all())
        student.recent_reviews = list(reviews.scalars().all())
        return student

    async def upsert_profile(self, user_id: str, data: StudentProfileUpsert) -> Student:
        student = await self.db.scalar(select(Student).where(Student.user_id == user_id).with_for_update())

        if student is None:
            student = Student(
                user_id=user_id,
                class_name=data.class_name,
                institute=data.institute,
                address=data.address,
                phone=data.phone,
                profile_pic=data.profile_pic,
                bio=data.bio,
                group=data.group or Group.NONE,
            )
            self.db.add(student)
        else:
            student.class_name = data.class_name
            student.institute = data.institute
            student.address = data.address
            student.phone = data.phone
            for name in ("profile_pic", "bio", "group"):
                if data.is_set(name):
                    setattr(student, name, getattr(data, name))

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Student profile was created concurrently. Please retry.")
        return await self._load_profile(user_id)

    async def update_profile(self, user_id: str, data: StudentProfilePatch) -> Student:
        student = await self.db.scalar(select(Student).where(Student.user_id == user_id).with_for_update())
        if student is None:
            raise profile_not_found("Student")

        for name, value in data.changes().items():
            setattr(student, name, value)

        await self.db.commit()
        return await self._load_profile(user_id)

    # -------------------------
    # Tutor browsing
    # -------------------------

    async def browse_tutors(self, filters: TutorBrowseFilters) -> Page:
        pagination = normalize_pagination(filters.page, filters.limit)

        criteria = where_all(
            Tutor.category_id == filters.category_id if filters.category_id else None,
            Tutor.group == filters.group if filters.group else None,
            Tutor.is_available.is_(filters.only_available) if filters.only_available is not None else None,
            Tutor.is_featured.is_(filters.only_featured) if filters.only_featured is not None else None,
            number_range(Tutor.price_per_day, filters.min_price_per_day, filters.max_price_per_day),
            text_search(filters.search, Tutor.subject, User.name),
        )

        stmt = (
            select(Tutor)
            .join(Tutor.user)
            .where(*criteria)
            .order_by(Tutor.created_at.desc())
            .options(*_tutor_card_options(), selectinload(Tutor.reviews))
        )
        page = await paginate(self.db, stmt, pagination)

        for tutor in page.data:
            summary = summarize_ratings(review.rating for review in tutor.reviews)
            tutor.avg_rating = summary.avg_rating
            tutor.reviews_count = summary.reviews_count
        return page

    async def get_tutor_details(self, tutor_id: str) -> Tutor:
        result = await self.db.execute(
            select(Tutor)
            .where(Tutor.tutor_id == tutor_id)
            .options(
                *_tutor_card_options(),
                selectinload(Tutor.reviews).selectinload(Review.student).selectinload(Student.user),
                selectinload(Tutor.reviews).selectinload(Review.booking),
            )
            .execution_options(populate_existing=True)
        )
        tutor = result.scalar_one_or_none()
        if tutor is None:
            raise NotFoundError("Tutor not found.")

        summary = summarize_ratings(review.rating for review in tutor.reviews)
        tutor.avg_rating = summary.avg_rating
        tutor.reviews_count = summary.reviews_count
        return tutor

    async def list_categories(self) -> List[Category]:
        return await CategoryService(self.db).list_categories()

    # -------------------------
    # Bookings
    # -------------------------

    async def create_booking(self, user_id: str, data: BookingCreate) -> Booking:
        student_id = await self._require_student_id(user_id)

        # Shared lock: an availability toggle waits until this booking is written
        tutor = await self.db.execute(
            select(Tutor.tutor_id, Tutor.is_available)
            .where(Tutor.tutor_id == data.tutor_id)
            .with_for_update(read=True)
        )
        tutor = tutor.first()
        if tutor is None:
            raise NotFoundError("Tutor not found.")
        if not tutor.is_available:
            raise ConflictError("Tutor is not available for booking.")

        booking = Booking(
            student_id=student_id,
            tutor_id=data.tutor_id,
            date=data.date,
            time=data.time,
            duration=data.duration,
            notes=data.notes,
            status=BookingStatus.CONFIRMED,
        )
        self.db.add(booking)
        await self.db.commit()
        logger.info(f"Student {student_id} booked tutor {data.tutor_id} (booking {booking.booking_id})")
        return await load_booking(self.db, booking.booking_id)

    async def list_bookings(self, user_id: str, filters: BookingFilters) -> Page:
        student_id = await self._require_student_id(user_id)
        pagination = normalize_pagination(filters.page, filters.limit)

        stmt = (
            select(Booking)
            .where(
                Booking.student_id == student_id,
                *where_all(
                    Booking.status == filters.status if filters.status else None,
                    date_range(Booking.date, filters.date_from, filters.date_to),
                ),
            )
            .order_by(Booking.date.desc())
            .options(*booking_detail_options())
        )
        return await paginate(self.db, stmt, pagination)

    async def get_booking(self, user_id: str, booking_id: str) -> Booking:
        student_id = await self._require_student_id(user_id)
        booking = await load_booking(self.db, booking_id, Booking.student_id == student_id)
        if booking is None:
            raise NotFoundError("Booking not found.")
        return booking

    async def cancel_booking(self, user_id: str, booking_id: str) -> Booking:
        student_id = await self._require_student_id(user_id)
        return await transition_booking(
            self.db,
            booking_id,
            Booking.student_id == student_id,
            BookingStatus.CANCELLED,
            "Only confirmed bookings can be cancelled.",
        )

    # -------------------------
    # Reviews
    # -------------------------

    async def create_review(self, user_id: str, data: ReviewCreate) -> Review:
        student_id = await self._require_student_id(user_id)

        # Row lock keeps a concurrent review (or transition) out until we commit
        booking = await self.db.scalar(
            select(Booking)
            .where(Booking.booking_id == data.booking_id, Booking.student_id == student_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        if booking is None:
            raise NotFoundError("Booking not found.")
        if booking.status != BookingStatus.COMPLETED:
            raise ConflictError("You can only review a completed session.")

        existing = await self.db.scalar(select(Review.review_id).where(Review.booking_id == booking.booking_id))
        if existing is not None:
            raise ConflictError("Review already exists for this booking.", code="REVIEW_EXISTS")

        review = Review(
            booking_id=booking.booking_id,
            student_id=booking.student_id,
            tutor_id=booking.tutor_id,
            rating=data.rating,
            comment=data.comment,
        )
        self.db.add(review)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Review already exists for this booking.", code="REVIEW_EXISTS")
        logger.info(f"Review {review.review_id} created for booking {data.booking_id}")

        result = await self.db.execute(
            select(Review)
            .where(Review.review_id == review.review_id)
            .options(*_review_options())
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def list_reviews(self, user_id: str, page=None, limit=None) -> Page:
        student_id = await self._require_student_id(user_id)
        pagination = normalize_pagination(page, limit)

        stmt = (
            select(Review)
            .where(Review.student_id == student_id)
            .order_by(Review.created_at.desc())
            .options(*_review_options())
        )
        return await paginate(self.db, stmt, pagination)
