from sqlalchemy.orm import declarative_base
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, func
from .config import settings
Base = declarative_base()

class UserProfile(Base):
    __tablename__ = "profiles"
    id = Column(String, primary_key=True, index=True)
    email = Column(String, nullable=False, index=True)
    credits_used = Column(Integer, nullable=False, default=0)
    credits_limit = Column(Integer, nullable=False, default=lambda: settings.FREE_CREDITS_LIMIT)
    is_premium = Column(Boolean, nullable=False, default=False)
    expiration_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

class ImageMetadataGeneration(Base):
    __tablename__ = "image_metadata_generations"
    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    prompt = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

class ActiveSession(Base):
    __tablename__ = "active_sessions"
    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, unique=True)
    email = Column(String, nullable=False, index=True)
    session_id = Column(String, nullable=False)
    last_activity = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

class UserSession(Base):
    __tablename__ = "user_sessions"
    id = Column(String, primary_key=True)
    session_id = Column(String, nullable=False, unique=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    country = Column(String, nullable=True)
    city = Column(String, nullable=True)
    last_seen = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now())
