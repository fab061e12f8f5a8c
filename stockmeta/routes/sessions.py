"""
Session routes - browser session tracking and one active session per user
"""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_db
from ..exceptions import SessionStoreError
from ..logger import logger
from ..schemas import ActiveSessionRequest, ActiveSessionStatus, CleanupResponse, TrackSessionRequest
from ..services import sessions as session_store
from ..services.workspace import workspaces

router = APIRouter(prefix="/functions", tags=["Sessions"])

@router.post("/track-user-session")
async def track_user_session(
    payload: TrackSessionRequest,
    db: AsyncSession = Depends(get_db)
):
    """Record a browser session with its approximate location"""
    location = await session_store.lookup_location(payload.ip_address)
    try:
        await session_store.track_user_session(
            db,
            user_id=payload.user_id,
            ip_address=payload.ip_address,
            user_agent=payload.user_agent,
            session_id=payload.session_id,
            location=location,
        )
    except SessionStoreError as e:
        return JSONResponse(status_code=400, content={"error": e.message})
    return {"success": True}

@router.post("/active-sessions", response_model=ActiveSessionStatus)
async def set_active_session(
    payload: ActiveSessionRequest,
    db: AsyncSession = Depends(get_db)
):
    await session_store.set_active_session(
        db,
        user_id=payload.user_id,
        email=payload.email,
        session_id=payload.session_id,
        activity_time=payload.activity_time,
    )
    return ActiveSessionStatus(active=True)

@router.get("/active-sessions", response_model=ActiveSessionStatus)
async def check_active_session(
    email: str = Query(...),
    db: AsyncSession = Depends(get_db)
):
    return ActiveSessionStatus(active=await session_store.has_active_session(db, email))

@router.post("/active-sessions/cleanup", response_model=CleanupResponse)
async def cleanup_active_sessions(db: AsyncSession = Depends(get_db)):
    """Remove active sessions idle for more than a day, with their workspaces"""
    user_ids = await session_store.cleanup_old_sessions(db)
    for user_id in user_ids:
        workspaces.discard(user_id)
    return CleanupResponse(removed=len(user_ids))

@router.delete("/active-sessions/{user_id}", response_model=ActiveSessionStatus)
async def remove_active_session(
    user_id: str,
    db: AsyncSession = Depends(get_db)
):
    """Sign-out: drop the active session and the in-memory workspace"""
    await session_store.remove_active_session(db, user_id=user_id)
    workspaces.discard(user_id)
    logger.info(f"Active session removed for user {user_id}")
    return ActiveSessionStatus(active=False)

@router.delete("/active-sessions", response_model=ActiveSessionStatus)
async def remove_active_session_by_email(
    email: str = Query(...),
    db: AsyncSession = Depends(get_db)
):
    await session_store.remove_active_session(db, email=email)
    return ActiveSessionStatus(active=False)
