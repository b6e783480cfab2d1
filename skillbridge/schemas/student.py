from pydantic import Field
from typing import ClassVar, Optional
from datetime import datetime

from skillbridge.models.student_profile import Group
from skillbridge.schemas.common import ORMModel, PatchModel
from skillbridge.schemas.user import UserSummary


class StudentOut(ORMModel):
    student_id: str = Field(..., description="Student profile ID")
    user_id: str = Field(..., description="Owning user ID")
    class_name: str = Field(..., description="Class / grade")
    institute: str = Field(..., description="School or college")
    address: str = Field(..., description="Postal address")
    phone: str = Field(..., description="Phone number")
    profile_pic: Optional[str] = Field(None, description="Profile picture URL")
    bio: Optional[str] = Field(None, description="Short bio")
    group: Group = Field(Group.NONE, description="Academic group")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[UserSummary] = None


class StudentProfileUpsert(PatchModel):
    NON_NULLABLE: ClassVar[frozenset] = frozenset({"group"})

    class_name: str = Field(..., min_length=1, description="Class / grade")
    institute: str = Field(..., min_length=1, description="School or college")
    address: str = Field(..., min_length=1, description="Postal address")
    phone: str = Field(..., min_length=1, description="Phone number")
    profile_pic: Optional[str] = Field(None, description="Profile picture URL")
    bio: Optional[str] = Field(None, description="Short bio")
    group: Optional[Group] = Field(None, description="Academic group, NONE when omitted")


class StudentProfilePatch(PatchModel):
    NON_NULLABLE: ClassVar[frozenset] = frozenset({"class_name", "institute", "address", "phone", "group"})

    class_name: Optional[str] = Field(None, min_length=1)
    institute: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = Field(None, min_length=1)
    profile_pic: Optional[str] = None
    bio: Optional[str] = None
    group: Optional[Group] = None
