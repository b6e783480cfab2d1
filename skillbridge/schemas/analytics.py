from pydantic import BaseModel, Field
from typing import Any, List, Optional
from datetime import date, datetime

from skillbridge.models.booking import BookingStatus
from skillbridge.models.student_profile import Group
from skillbridge.models.user import UserRole, UserStatus
from skillbridge.schemas.category import CategoryOut
from skillbridge.schemas.profile import RatingStats


class AnalyticsQuery(BaseModel):
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    top_tutors_limit: Any = None


class DateRange(BaseModel):
    date_from: datetime = Field(..., serialization_alias="from")
    date_to: datetime = Field(..., serialization_alias="to")


class Totals(BaseModel):
    users: int
    students: int
    tutors: int
    categories: int
    bookings: int
    reviews: int


class RoleCount(BaseModel):
    role: UserRole
    count: int


class StatusCount(BaseModel):
    status: UserStatus
    count: int


class BookingStatusCount(BaseModel):
    status: BookingStatus
    count: int


class DayCount(BaseModel):
    day: date
    count: int


class UserBreakdown(BaseModel):
    by_role: List[RoleCount]
    by_status: List[StatusCount]


class BookingBreakdown(BaseModel):
    by_status: List[BookingStatusCount]
    per_day: List[DayCount]


class TopTutorUser(BaseModel):
    id: str
    name: str
    email: str
    status: UserStatus
    role: UserRole


class TopTutorSummary(BaseModel):
    subject: str
    group: Group
    price_per_day: float
    is_featured: bool
    is_available: bool
    category: Optional[CategoryOut] = None
    user: TopTutorUser


class TopTutor(BaseModel):
    tutor_id: str
    avg_rating: float
    reviews_count: int
    tutor: Optional[TopTutorSummary] = None


class AnalyticsOut(BaseModel):
    range: DateRange
    totals: Totals
    users: UserBreakdown
    bookings: BookingBreakdown
    reviews: RatingStats
    top_tutors: List[TopTutor]
