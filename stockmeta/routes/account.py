"""
Account routes - profile and credits
"""
from fastapi import APIRouter, Depends

from ..auth import get_current_profile
from ..models import UserProfile as UserProfileModel
from ..schemas import UserProfile
from ..services.credits import profile_to_schema

router = APIRouter(prefix="/account", tags=["Account"])

@router.get("/profile", response_model=UserProfile)
async def get_profile(
    current_profile: UserProfileModel = Depends(get_current_profile)
):
    """Get profile with remaining credits and premium time left"""
    return profile_to_schema(current_profile)
