from datetime import datetime, timedelta, timezone
import logging

from fastapi import Request, HTTPException, status
from jose import jwt, JWTError

from config import JWT_SECRET, JWT_ALGORITHM, JWT_AUDIENCE, JWT_EXPIRY_HOURS

logger = logging.getLogger(__name__)


def create_token(user_id: str, email: str = None, expires_in: timedelta = None) -> str:
    """
    Mint an access token shaped like the ones Supabase Auth issues
    (sub, aud, role, exp). Used by local tooling and tests.
    """
    expire = datetime.now(timezone.utc) + (expires_in or timedelta(hours=JWT_EXPIRY_HOURS))
    to_encode = {
        "sub": user_id,
        "aud": JWT_AUDIENCE,
        "role": "authenticated",
        "exp": expire,
    }
    if email:
        to_encode["email"] = email
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> dict | None:
    """Decode and verify a JWT token. Returns the payload or None on failure."""
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM], audience=JWT_AUDIENCE)
    except JWTError as e:
        logger.info("Rejected access token: %s", e)
        return None


async def get_current_user(request: Request) -> str:
    """
    FastAPI dependency: extracts the Bearer token from the Authorization
    header, verifies it, and returns the user id (the token's `sub` claim).
    Raises HTTP 401 if the token is missing or invalid.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid Authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = auth_header.split(" ", 1)[1]
    payload = verify_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token payload missing required claims",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user_id
