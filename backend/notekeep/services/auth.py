# notekeep/services/auth.py
"""
Authentication service.

The only place where credentials are checked and the only place where tokens
are minted. Identity is always returned to the caller explicitly; nothing is
stashed in ambient request state.
"""
import datetime as dt
import logging
from dataclasses import dataclass
from typing import Optional

from tortoise.exceptions import IntegrityError
from tortoise.transactions import in_transaction

from notekeep.core.result import ErrorCode, Result
from notekeep.core.security import (
    TokenCodec,
    dummy_verify_password,
    hash_password,
    utc_now,
    verify_password,
)
from notekeep.models.user import User
from notekeep.services import repository

logger = logging.getLogger("uvicorn.error")

INVALID_CREDENTIALS_MESSAGE = "Incorrect username or password"


@dataclass(frozen=True)
class UserIdentity:
    """Minimal identity returned to clients (never includes the password hash)."""
    id: str
    username: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> "UserIdentity":
        return cls(id=str(user.id), username=user.username, email=user.email)


@dataclass(frozen=True)
class AuthSession:
    """Result of a successful register/login."""
    access_token: str
    user: UserIdentity
    token_type: str = "Bearer"


class Authenticator:
    """
    Registers users, checks credentials and issues bearer tokens.

    Args:
        codec: TokenCodec holding the signing secret
        token_ttl: Lifetime of issued tokens
    """

    def __init__(self, codec: TokenCodec, token_ttl: dt.timedelta):
        self.codec = codec
        self.token_ttl = token_ttl

    def _issue(self, user: User, now: Optional[dt.datetime] = None) -> AuthSession:
        token = self.codec.issue(user.username, now or utc_now(), self.token_ttl)
        return AuthSession(access_token=token, user=UserIdentity.from_user(user))

    async def register(self, username: str, email: str, raw_password: str) -> Result[AuthSession]:
        """
        Create a user account and log it in.

        The existence checks and the insert run in one transaction; the unique
        constraints on username/email decide concurrent races, so an
        IntegrityError on insert is mapped back to the matching duplicate code.

        Returns:
            Result[AuthSession], or USERNAME_EXISTS / EMAIL_EXISTS
        """
        try:
            async with in_transaction():
                if await repository.exists_by_username(username):
                    return Result.failure(ErrorCode.USERNAME_EXISTS, "Username already exists")
                if await repository.exists_by_email(email):
                    return Result.failure(ErrorCode.EMAIL_EXISTS, "Email already exists")
                user = await repository.save_user(User(
                    username=username,
                    email=email,
                    password_hash=hash_password(raw_password),  # Hash password before storing
                    role="user",
                ))
        except IntegrityError:
            # Lost a race with a concurrent registration
            if await repository.exists_by_username(username):
                return Result.failure(ErrorCode.USERNAME_EXISTS, "Username already exists")
            return Result.failure(ErrorCode.EMAIL_EXISTS, "Email already exists")

        logger.info("[auth] registered user username=%s id=%s", user.username, user.id)
        # Authenticate the freshly stored credentials exactly like a normal login
        return await self.login(username, raw_password)

    async def login(self, username: str, raw_password: str) -> Result[AuthSession]:
        """
        Verify credentials and issue a token.

        Unknown usernames and wrong passwords produce the same error and take
        roughly the same time.

        Returns:
            Result[AuthSession], or AUTH_INVALID_CREDENTIALS
        """
        user = await repository.find_user_by_username(username)
        if user is None:
            dummy_verify_password()
            logger.info("[auth] login failed username=%s", username)
            return Result.failure(ErrorCode.AUTH_INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)
        if not verify_password(raw_password, user.password_hash):
            logger.info("[auth] login failed username=%s", username)
            return Result.failure(ErrorCode.AUTH_INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)
        return Result.success(self._issue(user))

    async def current_user(self, token: str) -> Result[User]:
        """
        Resolve a bearer token to the stored user it names.

        Returns:
            Result[User], or AUTH_INVALID_TOKEN for any token/lookup failure
        """
        parsed = self.codec.parse_subject(token)
        if not parsed.ok:
            logger.info("[auth] rejected token: %s", parsed.error.code.value)
            return Result.failure(ErrorCode.AUTH_INVALID_TOKEN, "Invalid or expired token")
        user = await repository.find_user_by_username(parsed.value)
        if user is None:
            return Result.failure(ErrorCode.AUTH_INVALID_TOKEN, "Invalid or expired token")
        return Result.success(user)
