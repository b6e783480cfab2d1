from sqlalchemy import Column, String, JSON
from sqlalchemy.orm import relationship

from skillbridge.core.database import Base, TimestampMixin, generate_id


class Category(TimestampMixin, Base):
    __tablename__ = "categories"

    category_id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String, unique=True, nullable=False)
    subjects = Column(JSON, nullable=False, default=list)  # Ordered list of subject names

    # Relationships
    tutors = relationship("Tutor", back_populates="category")

    def __repr__(self):
        return f"<Category(category_id={self.category_id}, name={self.name})>"
