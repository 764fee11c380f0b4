"""FastAPI dependencies for dependency injection.

Provides reusable dependencies for authentication, database sessions,
the story generator and the services built on them.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taleforger.core.config import Settings, get_settings
from taleforger.core.security import decode_access_token
from taleforger.generation import StoryGenerator
from taleforger.models.database import get_session
from taleforger.models.user import User
from taleforger.services import StoryService, UserService

# Security scheme
security = HTTPBearer(auto_error=False)

# Database session dependency
DBSession = Annotated[AsyncSession, Depends(get_session)]


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return getattr(request.app.state, "settings", None) or get_settings()


AppSettings = Annotated[Settings, Depends(get_app_settings)]


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: DBSession,
    settings: AppSettings,
) -> User:
    """Get the current authenticated user from the bearer token.

    Raises:
        HTTPException: If authentication fails
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(credentials.credentials, settings)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is not valid",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def get_story_generator(request: Request) -> StoryGenerator | None:
    """Story generator created at startup, or None if no API key is configured."""
    return getattr(request.app.state, "story_generator", None)


def get_user_service(db: DBSession) -> UserService:
    return UserService(db)


def get_story_service(
    db: DBSession,
    generator: Annotated[StoryGenerator | None, Depends(get_story_generator)],
) -> StoryService:
    return StoryService(db, generator)


# Type aliases for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
Users = Annotated[UserService, Depends(get_user_service)]
Stories = Annotated[StoryService, Depends(get_story_service)]
