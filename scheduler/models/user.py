"""User model definitions."""

from uuid import uuid4

from sqlalchemy import Boolean, Column, String
from scheduler.database import Base


class User(Base):
    """Represents a patient account."""
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: uuid4().hex)
    name = Column(String)
    email = Column(String, unique=True, index=True)
    role = Column(String, default="patient")
    is_deleted = Column(Boolean, default=False, nullable=False)
