from pydantic import BaseModel, Field
from typing import Any, Optional
from datetime import datetime

from skillbridge.schemas.booking import BookingBase, ReviewBase
from skillbridge.schemas.student import StudentOut
from skillbridge.schemas.tutor import TutorOut


class ReviewOut(ReviewBase):
    student: Optional[StudentOut] = None
    tutor: Optional[TutorOut] = None
    booking: Optional[BookingBase] = None


class ReviewCreate(BaseModel):
    booking_id: str = Field(..., min_length=1, description="Completed booking to review")
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5")
    comment: Optional[str] = Field(None, description="Free-text comment")


class ReviewFilters(BaseModel):
    page: Any = None
    limit: Any = None
    tutor_id: Optional[str] = None
    student_id: Optional[str] = None
    min_rating: Optional[int] = None
    max_rating: Optional[int] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None
