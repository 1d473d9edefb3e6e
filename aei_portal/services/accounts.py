import logging

from sqlalchemy.orm import Session

from ..database import commit
from ..models.employer import Employer
from ..models.student import Student
from ..models.user import User
from ..repositories import documents as document_repo
from ..repositories import employers as employer_repo
from ..repositories import students as student_repo
from ..repositories import users as user_repo
from ..schemas.profiles import STUDENT_SELF_EDITABLE, EmployerProfileIn, StudentProfileIn
from ..utils.dependencies import Identity
from ..utils.error_handlers import (
    AuthenticationError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
    get_error_message,
)
from ..utils.roles import require_admin
from ..utils.security import hash_password, verify_password
from ..utils.validation import validate_email, validate_password
from .storage import remove_stored_file

logger = logging.getLogger(__name__)


def authenticate(db: Session, *, email: str, password: str) -> User:
    """Same error for unknown email and wrong password."""
    try:
        email = validate_email(email)
    except ValidationError:
        raise AuthenticationError()

    user = user_repo.get_user_by_email(db, email)
    if user is None or not verify_password(password or "", user.password_hash):
        logger.info("Failed login for %s", email)
        raise AuthenticationError()
    return user


def _new_user(db: Session, *, email: str, password: str, role: str) -> User:
    email = validate_email(email)
    validate_password(password)
    return user_repo.add_user(db, email=email, password_hash=hash_password(password), role=role)


def create_student_account(
    db: Session,
    actor: Identity,
    *,
    email: str,
    password: str,
    profile: StudentProfileIn | None = None,
) -> Student:
    """User + student profile in one transaction. New students start Pending Enrollment at level 1."""
    require_admin(actor)
    profile = profile or StudentProfileIn()

    user = _new_user(db, email=email, password=password, role="student")
    student = student_repo.add_student(db, user_id=user.id, **profile.model_dump())
    commit(db, "creating student")
    db.refresh(student)

    logger.info("Admin %s created student %s (%s)", actor.user_id, student.id, user.email)
    return student


def create_employer_account(
    db: Session,
    actor: Identity,
    *,
    email: str,
    password: str,
    profile: EmployerProfileIn | None = None,
) -> Employer:
    require_admin(actor)
    profile = profile or EmployerProfileIn()

    user = _new_user(db, email=email, password=password, role="employer")
    employer = employer_repo.add_employer(db, user_id=user.id, **profile.model_dump())
    commit(db, "creating employer")
    db.refresh(employer)

    logger.info("Admin %s created employer %s (%s)", actor.user_id, employer.id, user.email)
    return employer


def create_admin_account(db: Session, actor: Identity, *, email: str, password: str) -> User:
    require_admin(actor)
    user = _new_user(db, email=email, password=password, role="admin")
    commit(db, "creating admin")
    db.refresh(user)
    logger.info("Admin %s created admin %s", actor.user_id, user.email)
    return user


def bootstrap_admin(db: Session, *, email: str, password: str) -> User | None:
    """Create the first admin from ADMIN_EMAIL / ADMIN_PASSWORD. No-op if that account exists."""
    if not email or not password:
        return None

    existing = user_repo.get_user_by_email(db, email)
    if existing is not None:
        if existing.role != "admin":
            logger.warning("ADMIN_EMAIL %s belongs to a %s account; not promoting", email, existing.role)
        return existing

    user = _new_user(db, email=email, password=password, role="admin")
    commit(db, "bootstrapping admin")
    db.refresh(user)
    logger.info("Bootstrapped admin account %s", user.email)
    return user


def get_student_for(db: Session, actor: Identity, student_id: int) -> Student:
    student = student_repo.get_student(db, student_id)
    if student is None:
        raise NotFoundError(get_error_message("student_not_found"))
    if not actor.is_admin and student.user_id != actor.user_id:
        raise ForbiddenError()
    return student


def get_employer_for(db: Session, actor: Identity, employer_id: int) -> Employer:
    employer = employer_repo.get_employer(db, employer_id)
    if employer is None:
        raise NotFoundError(get_error_message("employer_not_found"))
    if not actor.is_admin and employer.user_id != actor.user_id:
        raise ForbiddenError()
    return employer


def update_student_profile(db: Session, actor: Identity, student_id: int, data: StudentProfileIn) -> Student:
    """
    Admins may edit every field. A student may edit only their own contact
    fields; anything else in the submitted form is ignored.
    """
    student = get_student_for(db, actor, student_id)

    changes = data.model_dump(exclude_unset=True)
    if not actor.is_admin:
        changes = {k: v for k, v in changes.items() if k in STUDENT_SELF_EDITABLE}

    for key, value in changes.items():
        setattr(student, key, value)

    commit(db, "updating student")
    db.refresh(student)
    logger.info("User %s updated student %s fields %s", actor.user_id, student.id, sorted(changes))
    return student


def update_employer_profile(db: Session, actor: Identity, employer_id: int, data: EmployerProfileIn) -> Employer:
    employer = get_employer_for(db, actor, employer_id)

    changes = data.model_dump(exclude_unset=True)
    for key, value in changes.items():
        setattr(employer, key, value)

    commit(db, "updating employer")
    db.refresh(employer)
    logger.info("User %s updated employer %s fields %s", actor.user_id, employer.id, sorted(changes))
    return employer


def set_password(db: Session, actor: Identity, user_id: int, new_password: str) -> None:
    """Admins resolve password-reset requests by setting a new password."""
    require_admin(actor)
    user = user_repo.get_user(db, user_id)
    if user is None:
        raise NotFoundError(get_error_message("user_not_found"))

    validate_password(new_password)
    user.password_hash = hash_password(new_password)
    commit(db, "setting password")
    logger.info("Admin %s set a new password for user %s", actor.user_id, user.id)


def delete_user(db: Session, actor: Identity, user_id: int) -> None:
    """
    Delete an account. The profile, its status history and its documents go
    with it through FK cascades; the stored files are removed afterwards,
    best-effort.
    """
    require_admin(actor)
    if int(user_id) == actor.user_id:
        raise ValidationError(get_error_message("cannot_delete_self"))

    user = user_repo.get_user(db, user_id)
    if user is None:
        raise NotFoundError(get_error_message("user_not_found"))

    stored_paths = document_repo.stored_paths_for_user(db, user.id)
    email = user.email

    db.delete(user)
    commit(db, "deleting user")

    for rel_path in stored_paths:
        remove_stored_file(rel_path)

    logger.info("Admin %s deleted user %s (%s, %d documents)", actor.user_id, user_id, email, len(stored_paths))

