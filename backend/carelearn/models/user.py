from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, String
from carelearn.clock import utcnow
from carelearn.database import Base, new_uuid


class AuthAccount(Base):
    """Credential record owned by the auth provider side of the system."""
    __tablename__ = "auth_accounts"

    id = Column(String(36), primary_key=True, default=new_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class User(Base):
    """Application profile, one row per auth account."""
    __tablename__ = "users"

    id = Column(String(36), ForeignKey("auth_accounts.id", ondelete="CASCADE"), primary_key=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(String(20), nullable=False)  # "admin" | "patient"
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    date_of_birth = Column(Date)
    gender = Column(String(10))
    phone = Column(String(30))
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
