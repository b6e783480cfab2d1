from pydantic import BaseModel, Field
from typing import Any, Optional
from datetime import datetime

from skillbridge.models.booking import BookingStatus
from skillbridge.schemas.common import ORMModel
from skillbridge.schemas.student import StudentOut
from skillbridge.schemas.tutor import TutorOut


class ReviewBase(ORMModel):
    review_id: str = Field(..., description="Review ID")
    student_id: str = Field(..., description="Student profile ID")
    tutor_id: str = Field(..., description="Tutor profile ID")
    booking_id: str = Field(..., description="Reviewed booking ID")
    rating: int = Field(..., description="Rating from 1 to 5")
    comment: Optional[str] = Field(None, description="Free-text comment")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BookingBase(ORMModel):
    booking_id: str = Field(..., description="Booking ID")
    student_id: str = Field(..., description="Student profile ID")
    tutor_id: str = Field(..., description="Tutor profile ID")
    date: datetime = Field(..., description="Session date")
    time: datetime = Field(..., description="Session start time")
    duration: int = Field(..., description="Duration in minutes")
    status: BookingStatus = Field(..., description="Booking status")
    notes: Optional[str] = Field(None, description="Additional notes")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BookingOut(BookingBase):
    student: Optional[StudentOut] = None
    tutor: Optional[TutorOut] = None
    review: Optional[ReviewBase] = None


class BookingCreate(BaseModel):
    tutor_id: str = Field(..., min_length=1, description="Tutor profile ID")
    date: datetime = Field(..., description="Session date")
    time: datetime = Field(..., description="Session start time")
    duration: int = Field(..., gt=0, description="Duration in minutes")
    notes: Optional[str] = Field(None, description="Additional notes")


class BookingFilters(BaseModel):
    page: Any = None
    limit: Any = None
    status: Optional[BookingStatus] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    search: Optional[str] = Field(None, description="Student (and, for admins, tutor) name or email")
    student_id: Optional[str] = None
    tutor_id: Optional[str] = None
