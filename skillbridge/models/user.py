from sqlalchemy import Column, String, Enum, Boolean
from sqlalchemy.orm import relationship
import enum

from skillbridge.core.database import Base, TimestampMixin, generate_id


class UserRole(str, enum.Enum):
    STUDENT = "STUDENT"
    TUTOR = "TUTOR"
    ADMIN = "ADMIN"


class UserStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)

    # Identity fields (owned by the auth provider)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)
    image = Column(String, nullable=True)

    # Admin-managed fields
    role = Column(Enum(UserRole), default=UserRole.STUDENT, nullable=False)
    status = Column(Enum(UserStatus), default=UserStatus.ACTIVE, nullable=False)

    # Relationships
    student = relationship("Student", back_populates="user", uselist=False, passive_deletes=True)
    tutor = relationship("Tutor", back_populates="user", uselist=False, passive_deletes=True)
    sessions = relationship("AuthSession", back_populates="user", passive_deletes=True)

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
