from pydantic import BaseModel, Field
from typing import Any, List, Optional
from datetime import datetime

from skillbridge.models.user import UserRole, UserStatus
from skillbridge.schemas.common import ORMModel


class UserSummary(ORMModel):
    id: str = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")
    role: UserRole = Field(..., description="Account role")
    status: UserStatus = Field(..., description="Account status")
    email_verified: bool = Field(False, description="Whether the email has been verified")
    image: Optional[str] = Field(None, description="Avatar URL")
    created_at: Optional[datetime] = Field(None, description="Creation time")
    updated_at: Optional[datetime] = Field(None, description="Last update time")


class ProfileRef(ORMModel):
    student_id: Optional[str] = None
    tutor_id: Optional[str] = None


class UserListItem(UserSummary):
    student: Optional[ProfileRef] = Field(None, description="Student profile reference")
    tutor: Optional[ProfileRef] = Field(None, description="Tutor profile reference")


class SessionOut(ORMModel):
    id: str = Field(..., description="Session ID")
    expires_at: datetime = Field(..., description="Expiry time")
    ip_address: Optional[str] = Field(None, description="Client IP address")
    user_agent: Optional[str] = Field(None, description="Client user agent")
    created_at: Optional[datetime] = Field(None, description="Creation time")


class UserRoleUpdate(BaseModel):
    role: UserRole = Field(..., description="New role")


class UserStatusUpdate(BaseModel):
    status: UserStatus = Field(..., description="New status")


class UserFilters(BaseModel):
    page: Any = None
    limit: Any = None
    search: Optional[str] = Field(None, description="Search by name or email")
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None
    email_verified: Optional[bool] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None
