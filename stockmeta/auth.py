"""
Authentication utilities and dependencies
"""
import jwt
from datetime import datetime, timedelta, timezone
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Any, Dict, Optional
from .models import UserProfile
from .db import get_db
from .config import settings
from .logger import logger

security = HTTPBearer()

ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24 * 7  # 7 days

def create_access_token(user_id: str, email: str) -> str:
    """Create a JWT access token"""
    now = datetime.now(timezone.utc)
    to_encode = {
        "sub": user_id,
        "email": email,
        "exp": now + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
        "iat": now,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode a JWT access token and return its claims, or None when invalid"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
    if not payload.get("sub") or not payload.get("email"):
        return None
    return payload

async def get_current_profile(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> UserProfile:
    """
    Dependency to get the signed-in user's profile from a JWT token.
    The first request from a new user creates a free-tier profile.
    """
    claims = decode_access_token(credentials.credentials)
    if claims is None:
        raise HTTPException(status_code=401, detail="Invalid authentication credentials")

    result = await db.execute(select(UserProfile).filter(UserProfile.id == claims["sub"]))
    profile = result.scalar_one_or_none()

    if profile is None:
        profile = UserProfile(
            id=claims["sub"],
            email=claims["email"],
            credits_used=0,
            credits_limit=settings.FREE_CREDITS_LIMIT,
            is_premium=False,
        )
        db.add(profile)
        await db.commit()
        await db.refresh(profile)
        logger.info(f"Profile created for user {profile.id}")

    return profile
