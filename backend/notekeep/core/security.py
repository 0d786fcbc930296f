# notekeep/core/security.py
"""
Security module for authentication.
Handles password hashing and signing/verification of bearer tokens (JWT, HS256).
"""
import binascii
import datetime as dt
import logging
from typing import Optional

import jwt  # PyJWT
from jwt.algorithms import get_default_algorithms
from jwt.utils import base64url_decode
from passlib.context import CryptContext

from notekeep.config import settings
from notekeep.core.result import ErrorCode, Result

logger = logging.getLogger("uvicorn.error")

# Password hashing context
# Argon2 is a modern, slow, salted password hashing algorithm
pwd_context = CryptContext(
    schemes=["argon2"],  # Use Argon2 for password hashing
    deprecated="auto",   # Automatically handle deprecated schemes
)

def hash_password(plain: str) -> str:
    """
    Hash a plain text password using Argon2.

    Args:
        plain: Plain text password to hash

    Returns:
        Hashed password string (safe to store in database)

    Note: Never store plain text passwords. Always use this function before saving.
    """
    return pwd_context.hash(plain)

def verify_password(plain: str, hashed: str) -> bool:
    """
    Verify a plain text password against a hashed password (constant time).

    Returns:
        True if password matches, False otherwise (also for an unreadable stored hash)
    """
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        # passlib raises UnknownHashError (a ValueError) for corrupt or foreign hashes
        logger.warning("[security] stored password hash could not be parsed")
        return False

def dummy_verify_password() -> None:
    """
    Spend roughly the time of a real verification.
    Called when the username does not exist so that timing does not reveal it.
    """
    pwd_context.dummy_verify()


def utc_now() -> dt.datetime:
    """Current UTC datetime with timezone information."""
    return dt.datetime.now(dt.timezone.utc)

def _timestamp(moment: dt.datetime) -> float:
    # Naive datetimes are treated as UTC
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=dt.timezone.utc)
    return moment.timestamp()


class TokenCodec:
    """
    Issues and verifies compact signed tokens (JWT).

    The token binds a subject (username) to a validity window. The payload is
    readable by anyone; the HMAC signature only makes it tamper-evident.
    The secret is injected once and never changes, so an instance can be shared
    freely between concurrent requests.

    Token payload:
        - sub: Subject (username)
        - iat: Issued at (NumericDate, sub-second precision kept)
        - exp: Expiration (NumericDate)
    """

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self._secret = secret
        self._algorithm = algorithm
        self._signer = get_default_algorithms()[algorithm]
        self._key = self._signer.prepare_key(secret)

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def issue(self, subject: str, now: dt.datetime, ttl: dt.timedelta) -> str:
        """
        Create a signed token for `subject` valid from `now` until `now + ttl`.

        Args:
            subject: Identity the token asserts (username)
            now: Issue time
            ttl: Time-to-live

        Returns:
            Encoded JWT string
        """
        payload = {
            "sub": subject,
            "iat": _timestamp(now),
            "exp": _timestamp(now + ttl),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def parse_subject(self, token: str, now: Optional[dt.datetime] = None) -> Result[str]:
        """
        Verify a token and return its subject.

        The signature over "header.payload" is checked (constant-time compare)
        before the payload is trusted, so changing any byte of header, payload or
        signature is reported as TOKEN_INVALID_SIGNATURE. Only a token that is
        not three dot-separated segments is TOKEN_MALFORMED at this stage.

        Args:
            token: Encoded JWT string
            now: Reference time for the expiry check (defaults to current UTC time)

        Returns:
            Result with the subject on success, or one of
            TOKEN_MALFORMED / TOKEN_INVALID_SIGNATURE / TOKEN_EXPIRED.
        """
        if not isinstance(token, str) or token.count(".") != 2:
            return Result.failure(ErrorCode.TOKEN_MALFORMED, "Malformed token")

        signing_input, _, signature_segment = token.rpartition(".")
        try:
            message = signing_input.encode("ascii")
            signature = base64url_decode(signature_segment.encode("ascii"))
        except (binascii.Error, UnicodeEncodeError, ValueError):
            # A signature that does not even decode cannot match
            return Result.failure(ErrorCode.TOKEN_INVALID_SIGNATURE, "Invalid token signature")
        if not self._signer.verify(message, self._key, signature):
            return Result.failure(ErrorCode.TOKEN_INVALID_SIGNATURE, "Invalid token signature")

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                # Expiry is checked below against the caller's clock
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": ["sub", "iat", "exp"],
                },
            )
        except jwt.InvalidSignatureError:
            return Result.failure(ErrorCode.TOKEN_INVALID_SIGNATURE, "Invalid token signature")
        except jwt.InvalidTokenError:
            return Result.failure(ErrorCode.TOKEN_MALFORMED, "Malformed token")

        subject = payload.get("sub")
        expires_at = payload.get("exp")
        if not isinstance(subject, str) or not isinstance(expires_at, (int, float)):
            return Result.failure(ErrorCode.TOKEN_MALFORMED, "Malformed token")

        if _timestamp(now or utc_now()) >= expires_at:
            return Result.failure(ErrorCode.TOKEN_EXPIRED, "Token expired")
        return Result.success(subject)

    def validate(self, token: str, now: Optional[dt.datetime] = None) -> bool:
        """Same checks as parse_subject, collapsed to a boolean."""
        return self.parse_subject(token, now).ok


# Process-wide codec built from configuration (secret is read-only after startup)
token_codec = TokenCodec(settings.jwt_secret, settings.jwt_algorithm)
