"""
Password hashing and bearer token issue/verification.
"""

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from config import Settings


class TokenError(Exception):
    pass


class TokenExpiredError(TokenError):
    pass


class InvalidTokenError(TokenError):
    pass


@lru_cache()
def _password_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def hash_password(password: str, settings: Settings) -> str:
    return _password_context(settings.bcrypt_rounds).hash(password)


def verify_password(plain_password: str, hashed_password: str, settings: Settings) -> bool:
    if not hashed_password:
        return False
    try:
        return _password_context(settings.bcrypt_rounds).verify(plain_password, hashed_password)
    except ValueError:
        # Unrecognised or corrupt hash
        return False


def create_access_token(user_id: str, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta if expires_delta is not None else timedelta(minutes=settings.token_ttl_minutes))
    to_encode = {"sub": str(user_id), "iat": now, "exp": expire}
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> str:
    """Return the user id carried by a token.

    Raises TokenExpiredError past the expiry and InvalidTokenError for
    anything not signed with the current secret or missing its subject.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        raise TokenExpiredError("Token expired")
    except JWTError:
        raise InvalidTokenError("Invalid token")
    user_id = payload.get("sub")
    if not user_id:
        raise InvalidTokenError("Invalid token")
    return user_id
