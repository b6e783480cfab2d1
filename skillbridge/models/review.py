from sqlalchemy import Column, String, Integer, ForeignKey, Text, Index
from sqlalchemy.orm import relationship

from skillbridge.core.database import Base, TimestampMixin, generate_id


class Review(TimestampMixin, Base):
    __tablename__ = "reviews"

    review_id = Column(String(36), primary_key=True, default=generate_id)

    student_id = Column(String(36), ForeignKey("students.student_id", ondelete="CASCADE"), nullable=False)
    tutor_id = Column(String(36), ForeignKey("tutors.tutor_id", ondelete="CASCADE"), nullable=False)
    booking_id = Column(String(36), ForeignKey("bookings.booking_id", ondelete="CASCADE"), nullable=False, unique=True)

    rating = Column(Integer, nullable=False)  # 1..5
    comment = Column(Text, nullable=True)

    # Relationships
    student = relationship("Student", back_populates="reviews")
    tutor = relationship("Tutor", back_populates="reviews")
    booking = relationship("Booking", back_populates="review")

    __table_args__ = (
        Index("ix_reviews_tutor_id", "tutor_id"),
        Index("ix_reviews_rating", "rating"),
    )

    def __repr__(self):
        return f"<Review(review_id={self.review_id}, booking_id={self.booking_id}, rating={self.rating})>"
