from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import CreditsExhaustedError
from ..logger import logger
from ..models import ImageMetadataGeneration, UserProfile
from ..schemas import UserProfile as UserProfileOut


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def is_premium_expired(expiration_date: Optional[datetime], now: Optional[datetime] = None) -> bool:
    if expiration_date is None:
        return True
    return _as_aware(expiration_date) <= (now or _now())


def get_time_remaining(expiration_date: Optional[datetime], now: Optional[datetime] = None) -> str:
    if expiration_date is None:
        return ""
    now = now or _now()
    expires = _as_aware(expiration_date)
    if expires <= now:
        return "Expired"
    days = (expires - now).days
    if days <= 0:
        return "Less than a day"
    return f"{days} days"


def has_active_premium(profile: UserProfile, now: Optional[datetime] = None) -> bool:
    """Premium counts until its expiration date; a premium row without a date never lapses."""
    if not profile.is_premium:
        return False
    if profile.expiration_date is None:
        return True
    return not is_premium_expired(profile.expiration_date, now)


def can_generate_metadata(profile: UserProfile, now: Optional[datetime] = None) -> bool:
    if has_active_premium(profile, now):
        return True
    return (profile.credits_used or 0) < profile.credits_limit


def remaining_credits(profile: UserProfile, now: Optional[datetime] = None) -> Optional[int]:
    """None means unlimited."""
    if has_active_premium(profile, now):
        return None
    return max(0, profile.credits_limit - (profile.credits_used or 0))


async def consume_credit(profile: UserProfile, db: AsyncSession) -> None:
    """
    Charge one run against the profile.

    Premium users are never charged; free users are refused once
    credits_used reaches credits_limit, so the counter never passes the limit.
    """
    if has_active_premium(profile):
        return
    if not can_generate_metadata(profile):
        raise CreditsExhaustedError()

    profile.credits_used = (profile.credits_used or 0) + 1
    await db.commit()
    await db.refresh(profile)
    logger.info(
        f"Credit consumed for user {profile.id}",
        extra={"credits_used": profile.credits_used, "credits_limit": profile.credits_limit},
    )


def profile_to_schema(profile: UserProfile) -> UserProfileOut:
    return UserProfileOut(
        id=profile.id,
        email=profile.email,
        creditsUsed=profile.credits_used or 0,
        creditsLimit=profile.credits_limit,
        isPremium=bool(profile.is_premium),
        expirationDate=profile.expiration_date,
        remainingCredits=remaining_credits(profile),
        timeRemaining=get_time_remaining(profile.expiration_date),
        canGenerate=can_generate_metadata(profile),
    )


async def record_generations(db: AsyncSession, user_id: str, prompts: List[str]) -> int:
    """Store image-to-prompt outputs in the user's generation history."""
    rows = [ImageMetadataGeneration(id=str(uuid.uuid4()), user_id=user_id, prompt=p) for p in prompts if p]
    if not rows:
        return 0
    db.add_all(rows)
    await db.commit()
    logger.info(f"Recorded {len(rows)} generated prompts", extra={"user_id": user_id})
    return len(rows)
