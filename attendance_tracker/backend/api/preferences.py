from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from ..db.redis_client import RedisClient, StorageError
from ..models.redis_models import User
from .auth import get_current_user
from .dependencies import get_redis_client

router = APIRouter(prefix="/preferences", tags=["Preferences"])


class DarkModePreference(BaseModel):
    enabled: bool


@router.get("/dark-mode", response_model=DarkModePreference, summary="Read the dark-mode flag")
async def get_dark_mode(user: User = Depends(get_current_user), redis_client: RedisClient = Depends(get_redis_client)):
    try:
        return DarkModePreference(enabled=await redis_client.get_dark_mode())
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@router.put("/dark-mode", response_model=DarkModePreference, summary="Set the dark-mode flag")
async def set_dark_mode(preference: DarkModePreference, user: User = Depends(get_current_user), redis_client: RedisClient = Depends(get_redis_client)):
    try:
        await redis_client.set_dark_mode(preference.enabled)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return preference
