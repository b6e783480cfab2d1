from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Text, Enum, Index
from sqlalchemy.orm import relationship
import enum

from skillbridge.core.database import Base, TimestampMixin, generate_id


class BookingStatus(str, enum.Enum):
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    def can_transition_to(self, target: "BookingStatus") -> bool:
        return target in _TRANSITIONS.get(self, frozenset())

    @classmethod
    def sources_for(cls, target: "BookingStatus") -> list:
        """States from which ``target`` may be reached"""
        return [status for status in cls if status.can_transition_to(target)]


# COMPLETED and CANCELLED are terminal
_TRANSITIONS = {
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
}


class Booking(TimestampMixin, Base):
    __tablename__ = "bookings"

    booking_id = Column(String(36), primary_key=True, default=generate_id)

    # Participants
    student_id = Column(String(36), ForeignKey("students.student_id", ondelete="CASCADE"), nullable=False)
    tutor_id = Column(String(36), ForeignKey("tutors.tutor_id", ondelete="CASCADE"), nullable=False)

    # Time information
    date = Column(DateTime(timezone=True), nullable=False)
    time = Column(DateTime(timezone=True), nullable=False)
    duration = Column(Integer, nullable=False)  # Minutes

    status = Column(Enum(BookingStatus), default=BookingStatus.CONFIRMED, nullable=False)
    notes = Column(Text, nullable=True)

    # Relationships
    student = relationship("Student", back_populates="bookings")
    tutor = relationship("Tutor", back_populates="bookings")
    review = relationship("Review", back_populates="booking", uselist=False, passive_deletes=True)

    __table_args__ = (
        Index("ix_bookings_date", "date"),
        Index("ix_bookings_status", "status"),
        Index("ix_bookings_student_id", "student_id"),
        Index("ix_bookings_tutor_id", "tutor_id"),
    )

    def __repr__(self):
        return f"<Booking(booking_id={self.booking_id}, student_id={self.student_id}, tutor_id={self.tutor_id}, status={self.status})>"
