"""Service-layer exceptions.

Routers never see these directly; ``taleforger.api.exceptions`` maps each
one to an HTTP status.
"""


class ServiceError(Exception):
    """Base exception for service errors."""

    pass


class InvalidCredentialsError(ServiceError):
    """Login identifier or password is wrong."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class IncorrectPasswordError(ServiceError):
    """Current password supplied for a profile change is wrong."""

    def __init__(self, message: str = "Current password is incorrect"):
        super().__init__(message)


class DuplicateUserError(ServiceError):
    """Username or email is already taken."""

    pass


class UserNotFoundError(ServiceError):
    """User not found."""

    pass


class StoryNotFoundError(ServiceError):
    """Story not found."""

    def __init__(self, story_id: int):
        super().__init__(f"Story {story_id} not found")
        self.story_id = story_id


class StoryAccessDeniedError(ServiceError):
    """Story belongs to another user."""

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)


class GeneratorNotConfiguredError(ServiceError):
    """No generation client was configured at startup."""

    def __init__(self, message: str = "AI client not initialized on server."):
        super().__init__(message)
