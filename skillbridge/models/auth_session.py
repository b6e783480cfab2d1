from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from skillbridge.core.database import Base, TimestampMixin, generate_id


class AuthSession(TimestampMixin, Base):
    """Login session written by the auth provider; read-only for this service"""

    __tablename__ = "auth_sessions"

    id = Column(String(36), primary_key=True, default=generate_id)
    token = Column(String, unique=True, index=True, nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)

    # Relationships
    user = relationship("User", back_populates="sessions")

    def __repr__(self):
        return f"<AuthSession(id={self.id}, user_id={self.user_id}, expires_at={self.expires_at})>"
