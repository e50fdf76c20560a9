from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from classroom.core.config import ACCESS_TOKEN_EXPIRE, ALGORITHM, SECRET_KEY


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Issue a bearer token carrying the caller identity (``sub`` = user id)."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or ACCESS_TOKEN_EXPIRE)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
