# clup/models/user.py
# Users are identified by their phone number; totem accounts belong to store terminals.
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from clup.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(20), primary_key=True, index=True)
    name = Column(String, nullable=True)
    surname = Column(String, nullable=True)
    is_totem = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    token = relationship("Token", back_populates="user", uselist=False, cascade="all, delete-orphan")


class Token(Base):
    __tablename__ = "tokens"

    id = Column(Integer, primary_key=True, index=True)
    # unique: a new login replaces the previous token
    user_id = Column(String(20), ForeignKey("users.id"), unique=True, nullable=False)
    token = Column(String, unique=True, index=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)

    user = relationship("User", back_populates="token")


class VerificationCode(Base):
    __tablename__ = "verification_codes"

    id = Column(Integer, primary_key=True, index=True)
    phone_number = Column(String(20), index=True, nullable=False)
    code_hash = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    expires_at = Column(DateTime, nullable=False)
