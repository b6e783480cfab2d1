from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from datetime import datetime

from skillbridge.api.responses import dump_many, paged, success
from skillbridge.core.auth import AuthenticatedUser, require_tutor
from skillbridge.core.database import get_db
from skillbridge.models.booking import BookingStatus
from skillbridge.schemas.booking import BookingFilters, BookingOut
from skillbridge.schemas.category import CategoryOut
from skillbridge.schemas.profile import TutorProfileOut
from skillbridge.schemas.review import ReviewFilters, ReviewOut
from skillbridge.schemas.tutor import AvailabilityUpdate, TutorProfilePatch, TutorProfileUpsert
from skillbridge.services.tutor_service import TutorService

router = APIRouter()


@router.get("/me")
async def get_my_profile(
    current_user: AuthenticatedUser = Depends(require_tutor),
    db: AsyncSession = Depends(get_db),
):
    tutor = await TutorService(db).get_profile(current_user.id)
    return success(tutor, TutorProfileOut)


@router.put("/me")
async def upsert_my_profile(
    profile_data: TutorProfileUpsert,
    current_user: AuthenticatedUser = Depends(require_tutor),
    db: AsyncSession = Depends(get_db),
):
    tutor = await TutorService(db).upsert_profile(current_user.id, profile_data)
    return success(tutor, TutorProfileOut)


@router.patch("/me")
async def update_my_profile(
    profile_data: TutorProfilePatch,
    current_user: AuthenticatedUser = Depends(require_tutor),
    db: AsyncSession = Depends(get_db),
):
    tutor = await TutorService(db).update_profile(current_user.id, profile_data)
    return success(tutor, TutorProfileOut)


@router.put("/availability")
async def set_my_availability(
    availability: AvailabilityUpdate,
    current_user: AuthenticatedUser = Depends(require_tutor),
    db: AsyncSession = Depends(get_db),
):
    """Toggle is_available; window fields change only when sent"""
    tutor = await TutorService(db).set_availability(current_user.id, availability)
    return success(tutor, TutorProfileOut)


@router.get("/categories")
async def list_categories(
    current_user: AuthenticatedUser = Depends(require_tutor),
    db: AsyncSession = Depends(get_db),
):
    categories = await TutorService(db).list_categories()
    return success(dump_many(categories, CategoryOut))


# -------------------------
# Sessions
# -------------------------

@router.get("/sessions")
async def list_my_sessions(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    student_search: Optional[str] = Query(None, description="Student name or email"),
    current_user: AuthenticatedUser = Depends(require_tutor),
    db: AsyncSession = Depends(get_db),
):
    filters = BookingFilters(
        page=page,
        limit=limit,
        status=booking_status,
        date_from=date_from,
        date_to=date_to,
        search=student_search,
    )
    result = await TutorService(db).list_sessions(current_user.id, filters)
    return paged(result, BookingOut)


@router.get("/sessions/{booking_id}")
async def get_my_session(
    booking_id: str,
    current_user: AuthenticatedUser = Depends(require_tutor),
    db: AsyncSession = Depends(get_db),
):
    booking = await TutorService(db).get_session(current_user.id, booking_id)
    return success(booking, BookingOut)


@router.patch("/sessions/{booking_id}/complete")
async def complete_my_session(
    booking_id: str,
    current_user: AuthenticatedUser = Depends(require_tutor),
    db: AsyncSession = Depends(get_db),
):
    booking = await TutorService(db).complete_session(current_user.id, booking_id)
    return success(booking, BookingOut)


# -------------------------
# Reviews & dashboard
# -------------------------

@router.get("/reviews")
async def list_my_reviews(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    min_rating: Optional[int] = Query(None, ge=1, le=5),
    max_rating: Optional[int] = Query(None, ge=1, le=5),
    current_user: AuthenticatedUser = Depends(require_tutor),
    db: AsyncSession = Depends(get_db),
):
    filters = ReviewFilters(page=page, limit=limit, min_rating=min_rating, max_rating=max_rating)
    result = await TutorService(db).list_reviews(current_user.id, filters)
    return paged(result, ReviewOut)


@router.get("/dashboard")
async def get_dashboard(
    current_user: AuthenticatedUser = Depends(require_tutor),
    db: AsyncSession = Depends(get_db),
):
    stats = await TutorService(db).dashboard_stats(current_user.id)
    return success(stats)
