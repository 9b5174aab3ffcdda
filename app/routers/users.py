from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine

from app.config.settings import settings
from app.db.session import create_engine, create_session_factory
from app.schemas.notification_schemas import PushTokenRegistration, PushTokenRemoval
from app.services.notifications.roles import RoleClassifier
from app.services.notifications.user_directory import UserDirectory
from app.utils.errors import BusinessLogicError
from app.utils.responses import ResponseBuilder

users_router = APIRouter()

# API processes share one engine for token writes; the worker builds its own.
_engine: Optional[AsyncEngine] = None
_directory: Optional[UserDirectory] = None


def get_user_directory() -> UserDirectory:
    global _engine, _directory
    if _directory is None:
        _engine = create_engine(settings.DATABASE_URL)
        _directory = UserDirectory(
            create_session_factory(_engine), RoleClassifier.from_settings(settings)
        )
    return _directory


async def close_user_directory() -> None:
    global _engine, _directory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _directory = None


Directory = Annotated[UserDirectory, Depends(get_user_directory)]


@users_router.post("/push-token")
async def save_push_token(
    request: Request, payload: PushTokenRegistration, directory: Directory
):
    """Register the device token that push notifications for this user go to."""
    if not await directory.save_push_token(payload.email, payload.push_token):
        raise BusinessLogicError("Failed to save push token", "PUSH_TOKEN_NOT_SAVED")
    return ResponseBuilder.success(request, "Push token saved successfully")


@users_router.delete("/push-token")
async def remove_push_token(
    request: Request, payload: PushTokenRemoval, directory: Directory
):
    """Clear the user's device token; later notifications go out by email only."""
    if not await directory.remove_push_token(payload.email):
        raise BusinessLogicError("Failed to remove push token", "PUSH_TOKEN_NOT_REMOVED")
    return ResponseBuilder.success(request, "Push token removed successfully")
