from datetime import datetime, timedelta

import bcrypt
from jose import JWTError, jwt

from .. import config

ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt directly.

    bcrypt truncates at 72 *bytes* and newer builds raise if you exceed it,
    so enforce the limit explicitly.
    """
    if not password:
        raise ValueError("Password is required")

    pw_bytes = password.encode("utf-8")
    if len(pw_bytes) > 72:
        raise ValueError("Password must be 72 bytes or less")

    hashed = bcrypt.hashpw(pw_bytes, bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        if not password or not hashed:
            return False
        pw_bytes = password.encode("utf-8")
        if len(pw_bytes) > 72:
            return False
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash in the DB.
        return False


def create_session_token(*, user_id: int, role: str) -> str:
    expire = datetime.utcnow() + timedelta(minutes=config.SESSION_MAX_AGE_MINUTES)
    return jwt.encode(
        {"sub": str(user_id), "role": role, "exp": expire},
        config.SECRET_KEY,
        algorithm=ALGORITHM,
    )


def decode_session_token(token: str) -> dict | None:
    """Return {"user_id", "role"} for a valid, unexpired token, else None."""
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[ALGORITHM])
        return {"user_id": int(payload["sub"]), "role": str(payload["role"])}
    except (JWTError, KeyError, ValueError, TypeError):
        return None
