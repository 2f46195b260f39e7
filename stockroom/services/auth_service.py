"""
User registration, login and token-to-user resolution.
"""

import logging
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.core.exceptions import (
    ConflictError,
    DatabaseError,
    ForbiddenError,
    InvalidArgumentError,
    UnauthorizedError,
    UserNotFoundError,
)
from stockroom.core.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)
from stockroom.core.utils import model_to_schema, validation_errors_to_fields
from stockroom.models.user import User
from stockroom.schemas.user import UserLogin, UserPublic, UserRead, UserRegister

logger = logging.getLogger(__name__)


def _token_for(user: User) -> str:
    return create_access_token(
        data={"sub": str(user.id), "username": user.username, "email": user.email}
    )


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _validate(data, schema):
        if isinstance(data, schema):
            return data
        try:
            return schema.model_validate(data or {})
        except ValidationError as e:
            raise InvalidArgumentError("Validation failed", errors=validation_errors_to_fields(e.errors()))

    async def _first(self, query) -> Optional[User]:
        result = await self.db.execute(query.limit(1))
        return result.scalars().first()

    async def register(self, user_data: Union[Dict[str, Any], UserRegister]) -> Dict[str, Any]:
        """
        Create a user and issue a token.

        Returns:
            {"token": str, "user": UserPublic}

        Raises:
            InvalidArgumentError: On short username/password or bad email
            ConflictError: If the username or email is already registered
        """
        data = self._validate(user_data, UserRegister)

        if await self._first(select(User).where(User.username == data.username)):
            raise ConflictError("Username already exists")
        if await self._first(select(User).where(User.email == data.email)):
            raise ConflictError("Email already exists")

        user = User(
            username=data.username,
            email=data.email,
            password=get_password_hash(data.password),
        )
        try:
            self.db.add(user)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Username or email already exists")
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Failed to create user: {str(e)}")

        await self.db.refresh(user)
        logger.info(f"Registered user {user.id} ({user.username})")
        return {"token": _token_for(user), "user": await model_to_schema(user, UserPublic)}

    async def login(self, credentials: Union[Dict[str, Any], UserLogin]) -> Dict[str, Any]:
        """
        Authenticate by username or email.

        An identifier containing "@" is looked up as an email, anything else
        as a username.

        Raises:
            UnauthorizedError: If the user is unknown or the password is wrong
        """
        data = self._validate(credentials, UserLogin)

        if "@" in data.identifier:
            query = select(User).where(User.email == data.identifier)
        else:
            query = select(User).where(User.username == data.identifier)

        user = await self._first(query)
        if user is None or not verify_password(data.password, user.password):
            logger.info(f"Failed login for {data.identifier!r}")
            raise UnauthorizedError("Invalid credentials")

        return {"token": _token_for(user), "user": await model_to_schema(user, UserPublic)}

    async def get_current_user(self, token: Optional[str]) -> UserRead:
        """
        Resolve a bearer token to its user.

        Raises:
            ForbiddenError: If no token was supplied
            UnauthorizedError: If the token is invalid or expired
            UserNotFoundError: If the user was deleted after the token was issued
        """
        if not token:
            raise ForbiddenError("No token provided")

        payload = decode_access_token(token)
        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError):
            raise UnauthorizedError("Invalid or expired token")

        user = await self.db.get(User, user_id)
        if user is None:
            raise UserNotFoundError("User not found")
        return await model_to_schema(user, UserRead)
