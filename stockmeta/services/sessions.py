"""
Session bookkeeping: per-browser session rows and one active session per user.

All writes are idempotent upserts: repeating a call with the same key updates
the existing row instead of adding a new one.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import httpx
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..exceptions import SessionStoreError
from ..logger import logger
from ..models import ActiveSession, UserSession


async def lookup_location(
    ip_address: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Optional[str]]:
    """Country and city for an IP; empty values when the lookup fails."""
    url = f"{settings.GEOIP_BASE_URL.rstrip('/')}/{ip_address}"
    try:
        async with httpx.AsyncClient(timeout=10.0, transport=transport) as client:
            response = await client.get(url)
            response.raise_for_status()
            data: Dict[str, Any] = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Geo lookup failed for {ip_address}: {e}")
        return {"country": None, "city": None}
    return {"country": data.get("country"), "city": data.get("city")}


async def track_user_session(
    db: AsyncSession,
    *,
    user_id: str,
    ip_address: str,
    user_agent: str,
    session_id: str,
    location: Optional[Dict[str, Optional[str]]] = None,
) -> UserSession:
    location = location or {}
    now = datetime.now(timezone.utc)
    try:
        result = await db.execute(select(UserSession).filter(UserSession.session_id == session_id))
        row = result.scalar_one_or_none()
        if row is None:
            row = UserSession(id=str(uuid.uuid4()), session_id=session_id)
            db.add(row)
        row.user_id = user_id
        row.ip_address = ip_address
        row.user_agent = user_agent
        row.last_seen = now
        row.country = location.get("country")
        row.city = location.get("city")
        await db.commit()
        await db.refresh(row)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to track session {session_id}: {e}")
        raise SessionStoreError(f"Failed to track session: {e}")

    logger.info(f"Session tracked: {session_id}", extra={"user_id": user_id})
    return row


async def set_active_session(
    db: AsyncSession,
    *,
    user_id: str,
    email: str,
    session_id: str,
    activity_time: Optional[datetime] = None,
) -> ActiveSession:
    activity_time = activity_time or datetime.now(timezone.utc)
    try:
        result = await db.execute(select(ActiveSession).filter(ActiveSession.user_id == user_id))
        row = result.scalar_one_or_none()
        if row is None:
            row = ActiveSession(id=str(uuid.uuid4()), user_id=user_id, email=email)
            db.add(row)
        row.session_id = session_id
        row.last_activity = activity_time
        await db.commit()
        await db.refresh(row)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to set active session for {user_id}: {e}")
        raise SessionStoreError(f"Failed to set active session: {e}")
    return row


async def has_active_session(db: AsyncSession, email: str) -> bool:
    try:
        result = await db.execute(select(ActiveSession.id).filter(ActiveSession.email == email).limit(1))
    except SQLAlchemyError as e:
        logger.error(f"Failed to check active session for {email}: {e}")
        raise SessionStoreError(f"Failed to check active session: {e}")
    return result.first() is not None


async def remove_active_session(
    db: AsyncSession,
    *,
    user_id: Optional[str] = None,
    email: Optional[str] = None,
) -> int:
    if user_id is None and email is None:
        raise ValueError("user_id or email is required")

    stmt = delete(ActiveSession)
    if user_id is not None:
        stmt = stmt.where(ActiveSession.user_id == user_id)
    else:
        stmt = stmt.where(ActiveSession.email == email)
    try:
        result = await db.execute(stmt)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise SessionStoreError(f"Failed to remove active session: {e}")
    return result.rowcount or 0


async def cleanup_old_sessions(db: AsyncSession, now: Optional[datetime] = None) -> List[str]:
    """Delete active sessions idle for longer than SESSION_IDLE_DAYS; returns the removed user ids."""
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=settings.SESSION_IDLE_DAYS)
    stale = ActiveSession.last_activity < cutoff
    try:
        user_ids = list((await db.execute(select(ActiveSession.user_id).where(stale))).scalars().all())
        await db.execute(delete(ActiveSession).where(stale))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise SessionStoreError(f"Failed to clean up sessions: {e}")
    logger.info(f"Removed {len(user_ids)} stale active sessions", extra={"user_ids": user_ids})
    return user_ids


async def check_session_store(db: AsyncSession) -> bool:
    """True when the session tables answer a query."""
    try:
        await db.execute(select(ActiveSession.id).limit(1))
        return True
    except SQLAlchemyError as e:
        logger.warning(f"Session store check failed: {e}")
        return False
