from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .. import config
from ..database import get_db
from ..models.user import User
from .error_handlers import UnauthorizedError
from .security import decode_session_token


@dataclass(frozen=True)
class Identity:
    """Who is making the request. Passed explicitly into every service call."""

    user_id: int
    role: str
    email: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def get_current_user(request: Request, db: Session = Depends(get_db)) -> Identity:
    token = request.cookies.get(config.SESSION_COOKIE_NAME)
    if not token:
        raise UnauthorizedError()

    claims = decode_session_token(token)
    if claims is None:
        raise UnauthorizedError()

    # Re-read the user so deleted accounts and changed roles take effect immediately.
    user = db.get(User, claims["user_id"])
    if user is None or user.role != claims["role"]:
        raise UnauthorizedError()

    return Identity(user_id=user.id, role=user.role, email=user.email)


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Identity | None:
    try:
        return get_current_user(request, db)
    except UnauthorizedError:
        return None
