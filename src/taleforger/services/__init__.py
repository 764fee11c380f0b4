"""Backend services for TaleForger.

Services hold the business logic behind the REST routers:
- users: registration, login and profile updates
- stories: prompt building, generation and persistence of stories

Usage:
    from taleforger.services import StoryService

    service = StoryService(db, generator)
    story = await service.create(user, title, hints, genres)
"""

from .errors import (
    DuplicateUserError,
    GeneratorNotConfiguredError,
    IncorrectPasswordError,
    InvalidCredentialsError,
    ServiceError,
    StoryAccessDeniedError,
    StoryNotFoundError,
    UserNotFoundError,
)
from .stories import StoryService, build_creation_prompt, build_regeneration_prompt
from .users import UserService

__all__ = [
    "UserService",
    "StoryService",
    "build_creation_prompt",
    "build_regeneration_prompt",
    # Errors
    "ServiceError",
    "InvalidCredentialsError",
    "IncorrectPasswordError",
    "DuplicateUserError",
    "GeneratorNotConfiguredError",
    "UserNotFoundError",
    "StoryNotFoundError",
    "StoryAccessDeniedError",
]
