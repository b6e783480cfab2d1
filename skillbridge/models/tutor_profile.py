from sqlalchemy import Column, String, Text, Integer, Float, Boolean, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship

from skillbridge.core.database import Base, TimestampMixin, generate_id
from skillbridge.models.student_profile import Group


class Tutor(TimestampMixin, Base):
    __tablename__ = "tutors"

    tutor_id = Column(String(36), primary_key=True, default=generate_id)

    # Foreign keys
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    category_id = Column(String(36), ForeignKey("categories.category_id", ondelete="RESTRICT"), nullable=False, index=True)

    # Profile information
    subject = Column(String, nullable=False)
    experience = Column(Integer, nullable=False)  # Years
    address = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    profile_pic = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    institute = Column(String, nullable=True)
    group = Column(Enum(Group), nullable=False)
    price_per_day = Column(Float, nullable=False)

    # Moderation and availability
    is_featured = Column(Boolean, default=False, nullable=False)  # Admin only
    is_available = Column(Boolean, default=True, nullable=False)
    available_from = Column(DateTime(timezone=True), nullable=True)
    available_to = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    user = relationship("User", back_populates="tutor")
    category = relationship("Category", back_populates="tutors")
    bookings = relationship("Booking", back_populates="tutor", passive_deletes=True)
    reviews = relationship("Review", back_populates="tutor", passive_deletes=True, order_by="Review.created_at.desc()")

    def __repr__(self):
        return f"<Tutor(tutor_id={self.tutor_id}, subject={self.subject}, is_available={self.is_available})>"
