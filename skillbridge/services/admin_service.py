"""Admin moderation: users, reviews, bookings, tutors and categories"""
import logging
from typing import Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from skillbridge.core.exceptions import NotFoundError
from skillbridge.core.pagination import (
    Page,
    date_range,
    normalize_pagination,
    number_range,
    paginate,
    text_search,
    where_all,
)
from skillbridge.models.auth_session import AuthSession
from skillbridge.models.booking import Booking
from skillbridge.models.review import Review
from skillbridge.models.student_profile import Student
from skillbridge.models.tutor_profile import Tutor
from skillbridge.models.user import User, UserRole, UserStatus
from skillbridge.schemas.booking import BookingFilters
from skillbridge.schemas.review import ReviewFilters
from skillbridge.schemas.tutor import AvailabilityUpdate
from skillbridge.schemas.user import UserFilters
from skillbridge.services.bookings import booking_detail_options
from skillbridge.services.tutor_service import apply_availability

logger = logging.getLogger(__name__)


def _user_matches(term: str):
    return or_(
        User.name.icontains(term, autoescape=True),
        User.email.icontains(term, autoescape=True),
    )


def participant_search(term: Optional[str]):
    """Match bookings whose student or tutor user name/email contains ``term``"""
    term = term.strip() if term else ""
    if not term:
        return None
    return or_(
        Booking.student.has(Student.user.has(_user_matches(term))),
        Booking.tutor.has(Tutor.user.has(_user_matches(term))),
    )


class AdminService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # -------------------------
    # Users
    # -------------------------

    async def list_users(self, filters: UserFilters) -> Page:
        pagination = normalize_pagination(filters.page, filters.limit)

        stmt = (
            select(User)
            .where(
                *where_all(
                    text_search(filters.search, User.name, User.email),
                    User.role == filters.role if filters.role else None,
                    User.status == filters.status if filters.status else None,
                    User.email_verified.is_(filters.email_verified) if filters.email_verified is not None else None,
                    date_range(User.created_at, filters.created_from, filters.created_to),
                )
            )
            .order_by(User.created_at.desc())
            .options(
                selectinload(User.student),
                selectinload(User.tutor),
            )
        )
        return await paginate(self.db, stmt, pagination)

    async def get_user(self, user_id: str) -> User:
        result = await self.db.execute(
            select(User)
            .where(User.id == user_id)
            .options(
                selectinload(User.student),
                selectinload(User.tutor).selectinload(Tutor.category),
                selectinload(User.sessions),
            )
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("User not found.")
        return user

    async def _get_user_for_update(self, user_id: str) -> User:
        user = await self.db.scalar(select(User).where(User.id == user_id).with_for_update())
        if user is None:
            raise NotFoundError("User not found.")
        return user

    async def set_role(self, user_id: str, role: UserRole) -> User:
        user = await self._get_user_for_update(user_id)
        user.role = role
        await self.db.commit()
        logger.info(f"Admin set role of user {user_id} to {role.value}")
        return user

    async def set_status(self, user_id: str, status: UserStatus) -> User:
        user = await self._get_user_for_update(user_id)
        user.status = status
        await self.db.commit()
        logger.info(f"Admin set status of user {user_id} to {status.value}")
        return user

    async def suspend(self, user_id: str) -> User:
        return await self.set_status(user_id, UserStatus.SUSPENDED)

    async def activate(self, user_id: str) -> User:
        return await self.set_status(user_id, UserStatus.ACTIVE)

    async def delete_user(self, user_id: str) -> dict:
        """Hard delete a user together with its profiles, their bookings and reviews.

        Every step runs in one transaction, so a failure part way leaves the
        store untouched.
        """
        await self._get_user_for_update(user_id)

        student_ids = select(Student.student_id).where(Student.user_id == user_id).scalar_subquery()
        tutor_ids = select(Tutor.tutor_id).where(Tutor.user_id == user_id).scalar_subquery()
        owned_bookings = or_(Booking.student_id.in_(student_ids), Booking.tutor_id.in_(tutor_ids))

        try:
            await self.db.execute(
                delete(Review)
                .where(or_(Review.student_id.in_(student_ids), Review.tutor_id.in_(tutor_ids)))
                .execution_options(synchronize_session=False)
            )
            await self.db.execute(delete(Booking).where(owned_bookings).execution_options(synchronize_session=False))
            await self.db.execute(
                delete(Student).where(Student.user_id == user_id).execution_options(synchronize_session=False)
            )
            await self.db.execute(
                delete(Tutor).where(Tutor.user_id == user_id).execution_options(synchronize_session=False)
            )
            await self.db.execute(
                delete(AuthSession).where(AuthSession.user_id == user_id).execution_options(synchronize_session=False)
            )
            await self.db.execute(delete(User).where(User.id == user_id).execution_options(synchronize_session=False))
            await self.db.commit()
        except Exception as e:
            logger.error(f"Failed to delete user {user_id}: {e}", exc_info=True)
            await self.db.rollback()
            raise

        logger.info(f"Admin deleted user {user_id}")
        return {"deleted_user_id": user_id}

    async def ensure_admin_role(self, user_id: str) -> User:
        return await self.set_role(user_id, UserRole.ADMIN)

    async def mark_email_verified(self, user_id: str) -> User:
        user = await self._get_user_for_update(user_id)
        user.email_verified = True
        await self.db.commit()
        return user

    # -------------------------
    # Reviews
    # -------------------------

    async def list_reviews(self, filters: ReviewFilters) -> Page:
        pagination = normalize_pagination(filters.page, filters.limit)

        stmt = (
            select(Review)
            .where(
                *where_all(
                    Review.tutor_id == filters.tutor_id if filters.tutor_id else None,
                    Review.student_id == filters.student_id if filters.student_id else None,
                    number_range(Review.rating, filters.min_rating, filters.max_rating),
                    date_range(Review.created_at, filters.created_from, filters.created_to),
                )
            )
            .order_by(Review.created_at.desc())
            .options(
                selectinload(Review.student).selectinload(Student.user),
                selectinload(Review.tutor).selectinload(Tutor.user),
                selectinload(Review.tutor).selectinload(Tutor.category),
                selectinload(Review.booking),
            )
        )
        return await paginate(self.db, stmt, pagination)

    async def delete_review(self, review_id: str) -> Review:
        review = await self.db.scalar(select(Review).where(Review.review_id == review_id))
        if review is None:
            raise NotFoundError("Review not found.")

        await self.db.delete(review)
        await self.db.commit()
        logger.info(f"Admin deleted review {review_id}")
        return review

    # -------------------------
    # Bookings & tutors
    # -------------------------

    async def list_bookings(self, filters: BookingFilters) -> Page:
        pagination = normalize_pagination(filters.page, filters.limit)

        stmt = (
            select(Booking)
            .where(
                *where_all(
                    Booking.status == filters.status if filters.status else None,
                    Booking.student_id == filters.student_id if filters.student_id else None,
                    Booking.tutor_id == filters.tutor_id if filters.tutor_id else None,
                    date_range(Booking.date, filters.date_from, filters.date_to),
                    participant_search(filters.search),
                )
            )
            .order_by(Booking.date.desc())
            .options(*booking_detail_options())
        )
        return await paginate(self.db, stmt, pagination)

    async def _get_tutor_for_update(self, tutor_id: str) -> Tutor:
        tutor = await self.db.scalar(select(Tutor).where(Tutor.tutor_id == tutor_id).with_for_update())
        if tutor is None:
            raise NotFoundError("Tutor not found.")
        return tutor

    async def set_tutor_featured(self, tutor_id: str, is_featured: bool) -> Tutor:
        tutor = await self._get_tutor_for_update(tutor_id)
        tutor.is_featured = is_featured
        await self.db.commit()
        logger.info(f"Admin set featured={is_featured} on tutor {tutor_id}")
        return tutor

    async def set_tutor_availability(self, tutor_id: str, data: AvailabilityUpdate) -> Tutor:
        tutor = await self._get_tutor_for_update(tutor_id)
        apply_availability(tutor, data)
        await self.db.commit()
        logger.info(f"Admin set availability={data.is_available} on tutor {tutor_id}")
        return tutor
