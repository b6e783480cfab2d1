"""Booking lifecycle shared by the student and tutor services.

Every transition is one conditional UPDATE that only matches rows whose
current status may move to the target, so two concurrent requests cannot
both win a transition out of CONFIRMED.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from skillbridge.core.exceptions import ConflictError, NotFoundError
from skillbridge.models.booking import Booking, BookingStatus
from skillbridge.models.student_profile import Student
from skillbridge.models.tutor_profile import Tutor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RatingSummary:
    avg_rating: float
    reviews_count: int


def summarize_ratings(ratings: Iterable[int]) -> RatingSummary:
    """Arithmetic mean of ``ratings`` (0 when there are none) and their count"""
    values: List[int] = list(ratings)
    if not values:
        return RatingSummary(avg_rating=0.0, reviews_count=0)
    return RatingSummary(avg_rating=sum(values) / len(values), reviews_count=len(values))


def booking_detail_options() -> list:
    return [
        selectinload(Booking.student).selectinload(Student.user),
        selectinload(Booking.tutor).selectinload(Tutor.user),
        selectinload(Booking.tutor).selectinload(Tutor.category),
        selectinload(Booking.review),
    ]


async def load_booking(db: AsyncSession, booking_id: str, *criteria) -> Optional[Booking]:
    result = await db.execute(
        select(Booking)
        .where(Booking.booking_id == booking_id, *criteria)
        .options(*booking_detail_options())
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def transition_booking(
    db: AsyncSession,
    booking_id: str,
    owner_clause,
    target: BookingStatus,
    conflict_message: str,
) -> Booking:
    """Move a booking owned by ``owner_clause`` to ``target`` or raise.

    Raises NotFoundError when the booking does not exist for this owner and
    ConflictError when its current status does not allow the move; in both
    cases the stored status is left unchanged.
    """
    result = await db.execute(
        update(Booking)
        .where(
            Booking.booking_id == booking_id,
            owner_clause,
            Booking.status.in_(BookingStatus.sources_for(target)),
        )
        .values(status=target)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 0:
        current = await db.scalar(
            select(Booking.status).where(Booking.booking_id == booking_id, owner_clause)
        )
        if current is None:
            raise NotFoundError("Booking not found.")
        raise ConflictError(conflict_message)

    await db.commit()
    logger.info(f"Booking {booking_id} moved to {target.value}")
    return await load_booking(db, booking_id)
