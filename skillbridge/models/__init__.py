from skillbridge.core.database import Base
from .user import User, UserRole, UserStatus
from .auth_session import AuthSession
from .student_profile import Student, Group
from .tutor_profile import Tutor
from .category import Category
from .booking import Booking, BookingStatus
from .review import Review

__all__ = [
    "Base",

    # Identity
    "User",
    "UserRole",
    "UserStatus",
    "AuthSession",

    # Profiles
    "Student",
    "Group",
    "Tutor",
    "Category",

    # Booking lifecycle
    "Booking",
    "BookingStatus",
    "Review",
]
