"""
SQLAlchemy models for accounts and verification attempts.
"""
import enum
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"
    GUEST = "guest"


class AccountStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    SUSPENDED = "suspended"


class VerificationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def _values(enum_cls):
    return [member.value for member in enum_cls]


class User(Base):
    """Account that can submit or review verifications."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(128), unique=True, nullable=False, index=True)
    password = Column(String(256), nullable=False)  # scrypt "hash.salt"
    role = Column(
        Enum(UserRole, values_callable=_values, name="user_role"),
        default=UserRole.USER,
        nullable=False,
    )
    status = Column(
        Enum(AccountStatus, values_callable=_values, name="account_status"),
        default=AccountStatus.ACTIVE,
        nullable=False,
    )
    full_name = Column(String(256), nullable=True)
    email = Column(String(256), nullable=True)
    department = Column(String(256), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    verifications = relationship("Verification", back_populates="user")


class Verification(Base):
    """One submission attempt and its resolved status."""
    __tablename__ = "verifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    merchant_id = Column(String(256), nullable=True)
    pin_number = Column(String(32), nullable=False)
    image_data = Column(Text, nullable=False)  # base64, no data-URI prefix
    status = Column(
        Enum(VerificationStatus, values_callable=_values, name="verification_status"),
        default=VerificationStatus.PENDING,
        nullable=False,
    )
    response = Column(Text, nullable=True)  # raw collaborator response or review note
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    user = relationship("User", back_populates="verifications")
