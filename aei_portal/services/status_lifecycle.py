"""
Student enrollment status transitions with an append-only audit trail.

    Pending Enrollment -> Active -> {On Hold, Completed, Withdrawn}
    On Hold -> Active

Every change is a synchronous admin action. A transition that does not change
the stored status writes nothing, so the history row count always equals the
number of real transitions.

With LEVEL_AUTO_ADVANCE on, admins get one extra target, "Completed Level":
the student's level goes up by one (capped at 4) and the status becomes
"Pending Re-Enrollment", both in the same transition.
"""
import logging

from sqlalchemy.orm import Session

from .. import config
from ..database import commit
from ..models.status_history import StatusHistory
from ..models.student import MAX_LEVEL, PENDING_REENROLLMENT, STUDENT_STATUSES
from ..repositories import students as student_repo
from ..utils.dependencies import Identity
from ..utils.error_handlers import NotFoundError, ValidationError, get_error_message
from ..utils.roles import require_admin

logger = logging.getLogger(__name__)

COMPLETED_LEVEL = "Completed Level"


def allowed_statuses() -> tuple[str, ...]:
    """Targets an admin may choose right now."""
    if config.LEVEL_AUTO_ADVANCE:
        return STUDENT_STATUSES + (COMPLETED_LEVEL,)
    return STUDENT_STATUSES


def transition_status(
    db: Session,
    *,
    student_id: int,
    new_status: str,
    actor: Identity,
) -> StatusHistory | None:
    """
    Move a student to `new_status`.

    Returns the new history row, or None when the status was already
    `new_status`. Raises ValidationError (nothing written) for a value outside
    the allowed set, NotFoundError for an unknown student, ForbiddenError for
    non-admins.
    """
    require_admin(actor)

    target = (new_status or "").strip()
    if target not in allowed_statuses():
        raise ValidationError(
            f"{get_error_message('invalid_status')} Must be one of: {', '.join(allowed_statuses())}"
        )

    student = student_repo.get_student(db, student_id, for_update=True)
    if student is None:
        raise NotFoundError(get_error_message("student_not_found"))

    old_status = student.status
    old_level = student.level

    if target == COMPLETED_LEVEL:
        student.level = min(student.level + 1, MAX_LEVEL)
        target = PENDING_REENROLLMENT

    if target == old_status:
        if student.level != old_level:
            commit(db, "advancing level")
            logger.info("Student %s level %s -> %s (status unchanged)", student.id, old_level, student.level)
        else:
            db.rollback()
        return None

    student.status = target
    row = student_repo.append_history(
        db,
        student_id=student.id,
        old_status=old_status,
        new_status=target,
        changed_by_user_id=actor.user_id,
    )
    commit(db, "changing student status")
    db.refresh(row)

    logger.info(
        "Student %s status %r -> %r by user %s (level %s -> %s)",
        student.id, old_status, target, actor.user_id, old_level, student.level,
    )
    return row


def status_history(db: Session, student_id: int) -> list[StatusHistory]:
    """Oldest first."""
    return student_repo.list_history(db, student_id)
