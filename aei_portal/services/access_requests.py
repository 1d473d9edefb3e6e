import logging

from sqlalchemy.orm import Session

from .. import config
from ..database import commit
from ..models.access_request import REQUEST_STATUSES, REQUEST_TYPES, AccessRequest
from ..repositories import access_requests as request_repo
from ..utils.dependencies import Identity
from ..utils.error_handlers import NotFoundError, get_error_message
from ..utils.roles import require_admin
from ..utils.validation import validate_choice, validate_email, validate_role, validate_string_field
from .emailer import send_access_request_notice, smtp_configured

logger = logging.getLogger(__name__)

# Admin accounts are never self-requested.
REQUESTABLE_ROLES = ("student", "employer")


def submit_access_request(
    db: Session,
    *,
    request_type: str,
    email: str,
    requested_role: str = "",
    note: str = "",
) -> AccessRequest:
    """
    Public intake for the register / reset-password forms. The outcome is the
    same whether or not an account exists for `email`.
    """
    request_type = validate_choice(request_type, "request type", REQUEST_TYPES)
    email = validate_email(email)
    if request_type == "register":
        requested_role = validate_role(requested_role, REQUESTABLE_ROLES)
    else:
        requested_role = ""
    note = validate_string_field(note, "Note", max_length=2000)

    req = request_repo.add_access_request(
        db,
        request_type=request_type,
        email=email,
        requested_role=requested_role,
        note=note,
    )
    commit(db, "saving access request")
    db.refresh(req)
    logger.info("Access request %s (%s) from %s", req.id, request_type, email)

    _notify_admin(req)
    return req


def _notify_admin(req: AccessRequest) -> None:
    if not config.ADMIN_NOTIFY_EMAIL or not smtp_configured():
        return
    try:
        send_access_request_notice(
            to_email=config.ADMIN_NOTIFY_EMAIL,
            request_type=req.request_type,
            requester_email=req.email,
            requested_role=req.requested_role,
            note=req.note,
        )
    except Exception as e:
        # The request is already stored; a mail failure must not fail the form.
        logger.error(f"Failed to send access request notice for request {req.id}: {type(e).__name__}: {e}")


def list_access_requests(db: Session, actor: Identity, *, status: str | None = "open") -> list[AccessRequest]:
    require_admin(actor)
    if status:
        status = validate_choice(status, "status", REQUEST_STATUSES)
    return request_repo.list_access_requests(db, status=status)


def close_access_request(db: Session, actor: Identity, request_id: int) -> AccessRequest:
    require_admin(actor)
    req = request_repo.get_access_request(db, request_id)
    if req is None:
        raise NotFoundError(get_error_message("request_not_found"))

    if req.status != "closed":
        req.status = "closed"
        commit(db, "closing access request")
        db.refresh(req)
        logger.info("Admin %s closed access request %s", actor.user_id, req.id)
    return req
