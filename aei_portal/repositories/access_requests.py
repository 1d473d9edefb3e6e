from sqlalchemy.orm import Session

from ..models.access_request import AccessRequest


def add_access_request(db: Session, **fields) -> AccessRequest:
    req = AccessRequest(**fields)
    db.add(req)
    db.flush()
    return req


def get_access_request(db: Session, request_id: int) -> AccessRequest | None:
    return db.get(AccessRequest, int(request_id))


def list_access_requests(db: Session, *, status: str | None = None) -> list[AccessRequest]:
    q = db.query(AccessRequest)
    if status:
        q = q.filter(AccessRequest.status == status)
    return q.order_by(AccessRequest.created_at.desc(), AccessRequest.id.desc()).all()
