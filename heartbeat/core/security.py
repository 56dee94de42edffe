from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from fastapi import HTTPException, status
from heartbeat.core.config import settings
import bcrypt
import hashlib
import logging

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"
PASSWORD_RESET_TOKEN_TYPE = "password_reset"

def hash_password(password: str) -> str:
    """Hash a password using bcrypt with configurable rounds."""
    # Truncate password to 72 bytes if necessary
    password_bytes = password.encode('utf-8')
    if len(password_bytes) > 72:
        password_bytes = password_bytes[:72]

    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password_bytes, salt).decode('utf-8')

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    try:
        password_bytes = plain_password.encode('utf-8')
        if len(password_bytes) > 72:
            password_bytes = password_bytes[:72]

        return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))
    except ValueError as e:
        logger.error(f"Password verification error: {e}")
        return False

def _encode(data: dict, token_type: str, expire: datetime) -> str:
    to_encode = data.copy()
    to_encode.update({
        "exp": expire,
        "iat": datetime.utcnow(),
        "iss": settings.APP_NAME,
        "aud": settings.APP_NAME,
        "type": token_type
    })

    try:
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    except JWTError as e:
        logger.error(f"Token creation error ({token_type}): {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Token creation failed"
        )

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(data, ACCESS_TOKEN_TYPE, expire)

def create_refresh_token(data: dict) -> str:
    """Create a JWT refresh token."""
    expire = datetime.utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return _encode(data, REFRESH_TOKEN_TYPE, expire)

def password_fingerprint(hashed_password: str) -> str:
    """Short digest of the stored hash; changes whenever the password does."""
    return hashlib.sha256(hashed_password.encode('utf-8')).hexdigest()[:16]

def create_password_reset_token(user_id: str, hashed_password: str) -> str:
    """
    Create a short-lived token embedded in password reset links.

    The token carries a fingerprint of the current password hash, so it stops
    working once the password has been changed with it.
    """
    expire = datetime.utcnow() + timedelta(minutes=settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES)
    claims = {"sub": user_id, "pwh": password_fingerprint(hashed_password)}
    return _encode(claims, PASSWORD_RESET_TOKEN_TYPE, expire)

def verify_token(token: str, expected_type: str = ACCESS_TOKEN_TYPE) -> dict:
    """Verify and decode a JWT token of the given type."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            audience=settings.APP_NAME,
            issuer=settings.APP_NAME
        )
    except JWTError as e:
        logger.warning(f"Token verification failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("type") != expected_type:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return payload
