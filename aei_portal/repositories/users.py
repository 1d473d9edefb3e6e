from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.user import User
from ..utils.error_handlers import DuplicateError, get_error_message


def get_user(db: Session, user_id: int) -> User | None:
    return db.get(User, int(user_id))


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(func.lower(User.email) == (email or "").strip().lower()).first()


def add_user(db: Session, *, email: str, password_hash: str, role: str) -> User:
    """Insert a user and flush so the id is available. Caller commits."""
    if get_user_by_email(db, email) is not None:
        raise DuplicateError(get_error_message("email_exists"))

    user = User(email=email.strip().lower(), password_hash=password_hash, role=role)
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        # Lost a race on the unique index.
        db.rollback()
        raise DuplicateError(get_error_message("email_exists"))
    return user