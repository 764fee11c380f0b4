"""User registration, login and profile management."""

import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taleforger.core.security import hash_password, verify_password
from taleforger.models.user import User

from .errors import (
    DuplicateUserError,
    IncorrectPasswordError,
    InvalidCredentialsError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)


class UserService:
    """Service for user accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: int) -> User:
        result = await self.db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    async def _username_taken(self, username: str) -> bool:
        result = await self.db.execute(select(User.id).where(User.username == username))
        return result.scalar_one_or_none() is not None

    async def _email_taken(self, email: str) -> bool:
        result = await self.db.execute(select(User.id).where(User.email == email))
        return result.scalar_one_or_none() is not None

    async def _commit_unique(self, message: str) -> None:
        # A concurrent request can claim the name between the check and the insert
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicateUserError(message) from e

    async def register(self, username: str, email: str, password: str) -> User:
        """Create a new user account.

        Args:
            username: Unique display name
            email: Unique email address
            password: Plain text password

        Returns:
            Created user

        Raises:
            DuplicateUserError: If the username or email is already registered
        """
        if await self._email_taken(email):
            raise DuplicateUserError("User already exists")
        if await self._username_taken(username):
            raise DuplicateUserError("Username is already taken")

        user = User(
            username=username,
            email=email,
            hashed_password=hash_password(password),
        )
        self.db.add(user)
        await self._commit_unique("User already exists")
        await self.db.refresh(user)

        logger.info(f"Registered user {user.id} ({user.username})")
        return user

    async def authenticate(self, identifier: str, password: str) -> User:
        """Authenticate by email or username.

        Raises:
            InvalidCredentialsError: If no user matches or the password is wrong
        """
        result = await self.db.execute(
            select(User).where(or_(User.email == identifier, User.username == identifier))
        )
        user = result.scalars().first()

        if user is None or not verify_password(password, user.hashed_password):
            raise InvalidCredentialsError()
        return user

    async def update_profile(
        self,
        user: User,
        username: str | None = None,
        email: str | None = None,
        current_password: str | None = None,
        new_password: str | None = None,
    ) -> User:
        """Update username, email and/or password.

        A new password is only applied when the correct current password is
        supplied alongside it.

        Raises:
            IncorrectPasswordError: If current_password does not match
            DuplicateUserError: If the new username or email is taken
        """
        if current_password:
            if not verify_password(current_password, user.hashed_password):
                raise IncorrectPasswordError()
            if new_password:
                user.hashed_password = hash_password(new_password)

        if username and username != user.username:
            if await self._username_taken(username):
                raise DuplicateUserError("Username is already taken")
            user.username = username

        if email and email != user.email:
            if await self._email_taken(email):
                raise DuplicateUserError("Email is already taken")
            user.email = email

        await self._commit_unique("Username or email is already taken")
        await self.db.refresh(user)
        return user
