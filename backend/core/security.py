from datetime import datetime, timedelta, timezone
from typing import Optional
import bcrypt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError
from sqlalchemy.ext.asyncio import AsyncSession
from core.config import settings
from core.database import get_db
from core.errors import Unauthorized, TokenExpired, InvalidToken
from models.user import User
from utils.logger import get_logger

logger = get_logger("core.security")

# Reads "Authorization: Bearer <token>"; missing or malformed headers yield None
bearer_scheme = HTTPBearer(auto_error=False)

# ------ Password Hashing -----
def hash_password(password: str) -> str:
    """Hash password using bcrypt. Safely handles 72-byte limit."""
    if not isinstance(password, str):
        password = str(password)

    password_bytes = password.encode("utf-8")[:72]
    if not password_bytes:
        raise ValueError("Password cannot be empty")

    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password_bytes, salt).decode("utf-8")

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash."""
    if not isinstance(plain_password, str):
        plain_password = str(plain_password)

    password_bytes = plain_password.encode("utf-8")[:72]
    if not password_bytes or not hashed_password:
        return False

    if isinstance(hashed_password, str):
        hashed_password = hashed_password.encode("utf-8")

    try:
        return bcrypt.checkpw(password_bytes, hashed_password)
    except ValueError:
        # Stored value is not a bcrypt hash
        return False

# ------ JWT Token creation -----
def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token with expiry."""
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})
    token = jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )
    logger.debug("Access token created", extra={"user_sub": data.get("sub")})
    return token

def create_user_token(user: User) -> str:
    return create_access_token(data={"sub": str(user.id)})

def decode_access_token(token: str) -> str:
    """
    Verify signature and expiry and return the user id stored in 'sub'.

    Raises TokenExpired or InvalidToken; the two are reported with
    different messages so clients can tell a stale session from a bad token.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        logger.warning("Token expired")
        raise TokenExpired()
    except JWTError as e:
        logger.warning("Token decode failed", extra={"error": str(e)})
        raise InvalidToken()

    user_id = payload.get("sub")
    if user_id is None or not str(user_id).isdigit():
        logger.warning("Token has no usable subject")
        raise InvalidToken()
    return str(user_id)

# ------ Auth Gate -----
def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> int:
    """
    Dependency for protected routes. Stateless: the caller id comes from the
    verified token alone and is trusted for ownership checks downstream.
    """
    if credentials is None or not credentials.credentials:
        logger.warning("Authentication failed - no bearer token")
        raise Unauthorized()

    user_id = int(decode_access_token(credentials.credentials))
    logger.debug("Caller resolved", extra={"user_id": user_id})
    return user_id

# ------ Get Current User -----
async def get_current_user(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Load the caller's User row; a token for a deleted account is rejected."""
    user = await db.get(User, user_id)
    if user is None:
        logger.warning("Authentication failed - user not found", extra={"user_id": user_id})
        raise Unauthorized("Unauthorized: User no longer exists")
    return user
