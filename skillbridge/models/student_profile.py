from sqlalchemy import Column, String, Text, Enum, ForeignKey
from sqlalchemy.orm import relationship
import enum

from skillbridge.core.database import Base, TimestampMixin, generate_id


class Group(str, enum.Enum):
    NONE = "NONE"
    SCIENCE = "SCIENCE"
    HUMANITIES = "HUMANITIES"
    BUSINESS_STUDIES = "BUSINESS_STUDIES"


class Student(TimestampMixin, Base):
    __tablename__ = "students"

    student_id = Column(String(36), primary_key=True, default=generate_id)

    # Foreign key to user
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)

    # Profile information
    class_name = Column("class", String, nullable=False)  # e.g. "10", "HSC 1st year"
    institute = Column(String, nullable=False)
    address = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    profile_pic = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    group = Column(Enum(Group), default=Group.NONE, nullable=False)

    # Relationships
    user = relationship("User", back_populates="student")
    bookings = relationship("Booking", back_populates="student", passive_deletes=True)
    reviews = relationship("Review", back_populates="student", passive_deletes=True)

    def __repr__(self):
        return f"<Student(student_id={self.student_id}, user_id={self.user_id}, institute={self.institute})>"
