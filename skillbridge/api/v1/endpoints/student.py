from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from datetime import datetime

from skillbridge.api.responses import dump_many, paged, success
from skillbridge.core.auth import AuthenticatedUser, require_student
from skillbridge.core.database import get_db
from skillbridge.models.booking import BookingStatus
from skillbridge.models.student_profile import Group
from skillbridge.schemas.booking import BookingCreate, BookingFilters, BookingOut
from skillbridge.schemas.category import CategoryOut
from skillbridge.schemas.profile import StudentProfileOut, TutorDetailOut
from skillbridge.schemas.review import ReviewCreate, ReviewOut
from skillbridge.schemas.student import StudentProfilePatch, StudentProfileUpsert
from skillbridge.schemas.tutor import TutorBrowseFilters, TutorListItem
from skillbridge.services.student_service import StudentService

router = APIRouter()


# -------------------------
# Public
# -------------------------

@router.get("/tutors")
async def browse_tutors(
    page: Optional[str] = Query(None, description="Page number (default 1)"),
    limit: Optional[str] = Query(None, description="Page size (default 20, max 100)"),
    search: Optional[str] = Query(None, description="Search by subject or tutor name"),
    category_id: Optional[str] = Query(None, description="Filter by category"),
    group: Optional[Group] = Query(None, description="Filter by academic group"),
    min_price_per_day: Optional[float] = Query(None, description="Minimum price per day"),
    max_price_per_day: Optional[float] = Query(None, description="Maximum price per day"),
    only_available: Optional[bool] = Query(None, description="Only tutors accepting bookings"),
    only_featured: Optional[bool] = Query(None, description="Only featured tutors"),
    db: AsyncSession = Depends(get_db),
):
    """Browse tutors with filters; each tutor carries avg_rating and reviews_count"""
    filters = TutorBrowseFilters(
        page=page,
        limit=limit,
        search=search,
        category_id=category_id,
        group=group,
        min_price_per_day=min_price_per_day,
        max_price_per_day=max_price_per_day,
        only_available=only_available,
        only_featured=only_featured,
    )
    result = await StudentService(db).browse_tutors(filters)
    return paged(result, TutorListItem)


@router.get("/tutors/{tutor_id}")
async def get_tutor_details(tutor_id: str, db: AsyncSession = Depends(get_db)):
    tutor = await StudentService(db).get_tutor_details(tutor_id)
    return success(tutor, TutorDetailOut)


@router.get("/categories")
async def list_categories(db: AsyncSession = Depends(get_db)):
    categories = await StudentService(db).list_categories()
    return success(dump_many(categories, CategoryOut))


# -------------------------
# Profile
# -------------------------

@router.get("/me")
async def get_my_profile(
    current_user: AuthenticatedUser = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    student = await StudentService(db).get_profile(current_user.id)
    return success(student, StudentProfileOut)


@router.put("/me")
async def upsert_my_profile(
    profile_data: StudentProfileUpsert,
    current_user: AuthenticatedUser = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    """Create the caller's student profile, or overwrite it when it exists"""
    student = await StudentService(db).upsert_profile(current_user.id, profile_data)
    return success(student, StudentProfileOut)


@router.patch("/me")
async def update_my_profile(
    profile_data: StudentProfilePatch,
    current_user: AuthenticatedUser = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    """Change only the fields present in the body"""
    student = await StudentService(db).update_profile(current_user.id, profile_data)
    return success(student, StudentProfileOut)


# -------------------------
# Bookings
# -------------------------

@router.post("/bookings", status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    current_user: AuthenticatedUser = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    booking = await StudentService(db).create_booking(current_user.id, booking_data)
    return success(booking, BookingOut)


@router.get("/bookings")
async def list_my_bookings(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    current_user: AuthenticatedUser = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    filters = BookingFilters(page=page, limit=limit, status=booking_status, date_from=date_from, date_to=date_to)
    result = await StudentService(db).list_bookings(current_user.id, filters)
    return paged(result, BookingOut)


@router.get("/bookings/{booking_id}")
async def get_my_booking(
    booking_id: str,
    current_user: AuthenticatedUser = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    booking = await StudentService(db).get_booking(current_user.id, booking_id)
    return success(booking, BookingOut)


@router.patch("/bookings/{booking_id}/cancel")
async def cancel_my_booking(
    booking_id: str,
    current_user: AuthenticatedUser = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    booking = await StudentService(db).cancel_booking(current_user.id, booking_id)
    return success(booking, BookingOut)


# -------------------------
# Reviews
# -------------------------

@router.post("/reviews", status_code=status.HTTP_201_CREATED)
async def create_review(
    review_data: ReviewCreate,
    current_user: AuthenticatedUser = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    """Review a completed booking; one review per booking"""
    review = await StudentService(db).create_review(current_user.id, review_data)
    return success(review, ReviewOut)


@router.get("/reviews")
async def list_my_reviews(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    current_user: AuthenticatedUser = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    result = await StudentService(db).list_reviews(current_user.id, page=page, limit=limit)
    return paged(result, ReviewOut)
