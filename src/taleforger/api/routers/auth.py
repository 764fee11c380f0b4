"""Authentication router for registration, login and profile management.

Issues a single bearer access token per login; the SPA keeps it in local
storage and sends it on every request.
"""

from datetime import datetime

from fastapi import APIRouter, status
from pydantic import AliasChoices, BaseModel, EmailStr, Field

from taleforger.api.deps import AppSettings, CurrentUser, Users
from taleforger.core.config import Settings
from taleforger.core.security import create_access_token
from taleforger.models.user import User

router = APIRouter()


# =============================================================================
# Schemas
# =============================================================================


class RegisterRequest(BaseModel):
    """User registration request."""

    username: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)


class LoginRequest(BaseModel):
    """User login request. ``identifier`` is an email or a username."""

    identifier: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("identifier", "emailOrUsername"),
    )
    password: str = Field(..., min_length=1)


class ProfileUpdateRequest(BaseModel):
    """Profile update request. A new password requires the current one."""

    username: str | None = Field(default=None, max_length=100)
    email: EmailStr | None = None
    current_password: str | None = Field(
        default=None,
        validation_alias=AliasChoices("current_password", "currentPassword"),
    )
    new_password: str | None = Field(
        default=None,
        min_length=8,
        max_length=128,
        validation_alias=AliasChoices("new_password", "newPassword"),
    )


class UserResponse(BaseModel):
    """Public user info."""

    id: int
    username: str
    email: str
    created_at: datetime

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    """Bearer token plus the authenticated user."""

    token: str
    token_type: str = "bearer"
    user: UserResponse


def _auth_response(user: User, settings: Settings) -> AuthResponse:
    return AuthResponse(
        token=create_access_token(user.id, settings),
        user=UserResponse.model_validate(user),
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest, users: Users, settings: AppSettings
) -> AuthResponse:
    """Register a new user and log them in.

    Raises:
        DuplicateUserError: If the email or username is already registered (409)
    """
    user = await users.register(
        username=request.username,
        email=request.email,
        password=request.password,
    )
    return _auth_response(user, settings)


@router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest, users: Users, settings: AppSettings) -> AuthResponse:
    """Login with email or username and password.

    Raises:
        InvalidCredentialsError: If the credentials do not match (401)
    """
    user = await users.authenticate(request.identifier, request.password)
    return _auth_response(user, settings)


@router.get("/profile", response_model=UserResponse)
async def get_profile(user: CurrentUser) -> User:
    """Get the current user's profile."""
    return user


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    request: ProfileUpdateRequest,
    user: CurrentUser,
    users: Users,
) -> User:
    """Update the current user's username, email or password."""
    return await users.update_profile(
        user,
        username=request.username,
        email=request.email,
        current_password=request.current_password,
        new_password=request.new_password,
    )
