"""
User-related database models.
"""
import uuid

from sqlalchemy import Column, String, DateTime, Uuid

from chronos.models.base import Base, utcnow


class User(Base):
    """Account created on first sign-in through the identity provider."""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    provider_id = Column(String(255), nullable=False, unique=True, index=True)  # Entra object id
    email = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    avatar_url = Column(String(1024), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
