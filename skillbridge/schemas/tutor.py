from pydantic import BaseModel, Field, model_validator
from typing import Any, ClassVar, Optional
from datetime import datetime

from skillbridge.models.student_profile import Group
from skillbridge.schemas.category import CategoryOut
from skillbridge.schemas.common import ORMModel, PatchModel
from skillbridge.schemas.user import UserSummary


class TutorOut(ORMModel):
    tutor_id: str = Field(..., description="Tutor profile ID")
    user_id: str = Field(..., description="Owning user ID")
    subject: str = Field(..., description="Main subject")
    experience: int = Field(..., description="Years of experience")
    address: str = Field(..., description="Postal address")
    phone: str = Field(..., description="Phone number")
    profile_pic: Optional[str] = Field(None, description="Profile picture URL")
    bio: Optional[str] = Field(None, description="Tutor bio")
    institute: Optional[str] = Field(None, description="Institute")
    group: Group = Field(..., description="Academic group")
    category_id: str = Field(..., description="Category ID")
    price_per_day: float = Field(..., description="Price per day")
    is_featured: bool = Field(False, description="Featured by an admin")
    is_available: bool = Field(True, description="Accepting bookings")
    available_from: Optional[datetime] = Field(None, description="Availability window start")
    available_to: Optional[datetime] = Field(None, description="Availability window end")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[UserSummary] = None
    category: Optional[CategoryOut] = None


class TutorListItem(TutorOut):
    avg_rating: float = Field(0, description="Mean review rating, 0 without reviews")
    reviews_count: int = Field(0, description="Number of reviews")


class TutorProfileUpsert(PatchModel):
    subject: str = Field(..., min_length=1, description="Main subject")
    experience: int = Field(..., ge=0, description="Years of experience")
    address: str = Field(..., min_length=1, description="Postal address")
    phone: str = Field(..., min_length=1, description="Phone number")
    profile_pic: Optional[str] = Field(None, description="Profile picture URL")
    bio: Optional[str] = Field(None, description="Tutor bio")
    institute: Optional[str] = Field(None, description="Institute")
    group: Group = Field(..., description="Academic group")
    category_id: str = Field(..., min_length=1, description="Category ID")
    price_per_day: float = Field(..., ge=0, description="Price per day")


class TutorProfilePatch(PatchModel):
    NON_NULLABLE: ClassVar[frozenset] = frozenset({"subject", "experience", "address", "phone", "group", "category_id", "price_per_day"})

    subject: Optional[str] = Field(None, min_length=1)
    experience: Optional[int] = Field(None, ge=0)
    address: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = Field(None, min_length=1)
    profile_pic: Optional[str] = None
    bio: Optional[str] = None
    institute: Optional[str] = None
    group: Optional[Group] = None
    category_id: Optional[str] = Field(None, min_length=1)
    price_per_day: Optional[float] = Field(None, ge=0)


class AvailabilityUpdate(PatchModel):
    is_available: bool = Field(..., description="Whether the tutor accepts bookings")
    available_from: Optional[datetime] = Field(None, description="Window start; null clears it")
    available_to: Optional[datetime] = Field(None, description="Window end; null clears it")

    @model_validator(mode="after")
    def _check_window(self):
        if self.available_from and self.available_to and self.available_from > self.available_to:
            raise ValueError("available_from must not be after available_to")
        return self


class FeaturedUpdate(BaseModel):
    is_featured: bool = Field(..., description="Featured flag")


class TutorBrowseFilters(BaseModel):
    page: Any = None
    limit: Any = None
    search: Optional[str] = Field(None, description="Matches subject or tutor name")
    category_id: Optional[str] = None
    group: Optional[Group] = None
    min_price_per_day: Optional[float] = None
    max_price_per_day: Optional[float] = None
    only_available: Optional[bool] = None
    only_featured: Optional[bool] = None
