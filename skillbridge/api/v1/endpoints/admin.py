from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from datetime import datetime

from skillbridge.api.responses import paged, success
from skillbridge.core.auth import AuthenticatedUser, require_admin
from skillbridge.core.database import get_db
from skillbridge.models.booking import BookingStatus
from skillbridge.models.user import UserRole, UserStatus
from skillbridge.schemas.analytics import AnalyticsQuery
from skillbridge.schemas.booking import BookingFilters, BookingOut
from skillbridge.schemas.category import CategoryCreate, CategoryOut, CategoryUpdate
from skillbridge.schemas.profile import UserDetailOut
from skillbridge.schemas.review import ReviewBase, ReviewFilters, ReviewOut
from skillbridge.schemas.tutor import AvailabilityUpdate, FeaturedUpdate, TutorOut
from skillbridge.schemas.user import UserFilters, UserListItem, UserRoleUpdate, UserStatusUpdate, UserSummary
from skillbridge.services.admin_service import AdminService
from skillbridge.services.analytics_service import AnalyticsService
from skillbridge.services.category_service import CategoryService

router = APIRouter()


# -------------------------
# Users
# -------------------------

@router.get("/users")
async def list_users(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Search by name or email"),
    role: Optional[UserRole] = Query(None),
    user_status: Optional[UserStatus] = Query(None, alias="status"),
    email_verified: Optional[bool] = Query(None),
    created_from: Optional[datetime] = Query(None),
    created_to: Optional[datetime] = Query(None),
    current_user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    filters = UserFilters(
        page=page,
        limit=limit,
        search=search,
        role=role,
        status=user_status,
        email_verified=email_verified,
        created_from=created_from,
        created_to=created_to,
    )
    result = await AdminService(db).list_users(filters)
    return paged(result, UserListItem)


@router.get("/users/{user_id}")
async def get_user(
    user_id: str,
    current_user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await AdminService(db).get_user(user_id)
    return success(user, UserDetailOut)


@router.patch("/users/{user_id}/role")
async def set_user_role(
    user_id: str,
    role_data: UserRoleUpdate,
    current_user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await AdminService(db).set_role(user_id, role_data.role)
    return success(user, UserSummary)


@router.patch("/users/{user_id}/status")
async def set_user_status(
    user_id: str,
    status_data: UserStatusUpdate,
    current_user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await AdminService(db).set_status(user_id, status_data.status)
    return success(user, UserSummary)


@router.patch("/users/{user_id}/suspend")
async def suspend_user(
    user_id: str,
    current_user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await AdminService(db).suspend(user_id)
    return success(user, UserSummary)


@router.patch("/users/{user_id}/activate")
async def activate_user(
    user_id: str,
    current_user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await AdminService(db).activate(user_id)
    return success(user, UserSummary)


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    current_user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Hard delete a user with its profiles, bookings and reviews"""
    result = await AdminService(db).delete_user(user_id)
    return success(result)


# -------------------------
# Analytics
# -------------------------

@router.get("/analytics")
async def get_analytics(
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    top_tutors_limit: Optional[str] = Query(None, description="Leaderboard size (default 5, 1-20)"),
    current_user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    query = AnalyticsQuery(date_from=date_from, date_to=date_to, top_tutors_limit=top_tutors_limit)
    analytics = await AnalyticsService(db).get_analytics(query)
    return success(analytics)


# -------------------------
# Reviews & bookings
# -------------------------

@router.get("/reviews")
async def list_reviews(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    tutor_id: Optional[str] = Query(None),
    student_id: Optional[str] = Query(None),
    min_rating: Optional[int] = Query(None, ge=1, le=5),
    max_rating: Optional[int] = Query(None, ge=1, le=5),
    created_from: Optional[datetime] = Query(None),
    created_to: Optional[datetime] = Query(None),
    current_user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    filters = ReviewFilters(
        page=page,
        limit=limit,
        tutor_id=tutor_id,
        student_id=student_id,
        min_rating=min_rating,
        max_rating=max_rating,
        created_from=created_from,
        created_to=created_to,
    )
    result = await AdminService(db).list_reviews(filters)
    return paged(result, ReviewOut)


@router.delete("/reviews/{review_id}")
async def delete_review(
    review_id: str,
    current_user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    review = await AdminService(db).delete_review(review_id)
    return success(review, ReviewBase)


@router.get("/bookings")
async def list_bookings(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    student_id: Optional[str] = Query(None),
    tutor_id: Optional[str] = Query(None),
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    search: Optional[str] = Query(None, description="Student or tutor name/email"),
    current_user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    filters = BookingFilters(
        page=page,
        limit=limit,
        status=booking_status,
        student_id=student_id,
        tutor_id=tutor_id,
        date_from=date_from,
        date_to=date_to,
        search=search,
    )
    result = await AdminService(db).list_bookings(filters)
    return paged(result, BookingOut)


# -------------------------
# Tutors
# -------------------------

@router.patch("/tutors/{tutor_id}/featured")
async def set_tutor_featured(
    tutor_id: str,
    featured: FeaturedUpdate,
    current_user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    tutor = await AdminService(db).set_tutor_featured(tutor_id, featured.is_featured)
    return success(tutor, TutorOut)


@router.patch("/tutors/{tutor_id}/availability")
async def set_tutor_availability(
    tutor_id: str,
    availability: AvailabilityUpdate,
    current_user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    tutor = await AdminService(db).set_tutor_availability(tutor_id, availability)
    return success(tutor, TutorOut)


# -------------------------
# Categories
# -------------------------

@router.post("/categories", status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    current_user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    category = await CategoryService(db).create_category(category_data)
    return success(category, CategoryOut)


@router.patch("/categories/{category_id}")
async def update_category(
    category_id: str,
    category_data: CategoryUpdate,
    current_user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    category = await CategoryService(db).update_category(category_id, category_data)
    return success(category, CategoryOut)


@router.delete("/categories/{category_id}")
async def delete_category(
    category_id: str,
    current_user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    category = await CategoryService(db).delete_category(category_id)
    return success(category, CategoryOut)
