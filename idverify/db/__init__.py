"""Persistence: engine, session and ORM models"""
from .database import Base, SessionLocal, get_db, init_db
from .models import AccountStatus, User, UserRole, Verification, VerificationStatus

__all__ = [
    'Base',
    'SessionLocal',
    'get_db',
    'init_db',
    'AccountStatus',
    'User',
    'UserRole',
    'Verification',
    'VerificationStatus',
]
