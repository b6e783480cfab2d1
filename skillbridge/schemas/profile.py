from pydantic import BaseModel, Field
from typing import List, Optional

from skillbridge.schemas.booking import BookingOut
from skillbridge.schemas.review import ReviewOut
from skillbridge.schemas.student import StudentOut
from skillbridge.schemas.tutor import TutorListItem, TutorOut
from skillbridge.schemas.user import SessionOut, UserSummary


class StudentProfileOut(StudentOut):
    recent_bookings: List[BookingOut] = Field(default_factory=list, description="Five most recent bookings")
    recent_reviews: List[ReviewOut] = Field(default_factory=list, description="Five most recent reviews")


class TutorProfileOut(TutorListItem):
    recent_sessions: List[BookingOut] = Field(default_factory=list, description="Five most recent sessions")
    recent_reviews: List[ReviewOut] = Field(default_factory=list, description="Five most recent reviews")


class TutorDetailOut(TutorListItem):
    reviews: List[ReviewOut] = Field(default_factory=list, description="All reviews, newest first")


class UserDetailOut(UserSummary):
    student: Optional[StudentOut] = None
    tutor: Optional[TutorOut] = None
    sessions: List[SessionOut] = Field(default_factory=list, description="Active login sessions")


class SessionCounts(BaseModel):
    total: int = 0
    confirmed: int = 0
    completed: int = 0
    cancelled: int = 0


class RatingStats(BaseModel):
    average_rating: float = 0
    count: int = 0


class DashboardStats(BaseModel):
    sessions: SessionCounts
    reviews: RatingStats
