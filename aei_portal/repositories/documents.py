from sqlalchemy.orm import Session

from ..models.document import Document
from ..models.employer import Employer
from ..models.student import Student


def _owner_column(entity_type: str):
    return Document.student_id if entity_type == "student" else Document.employer_id


def get_document(db: Session, document_id: int) -> Document | None:
    return db.get(Document, int(document_id))


def list_documents(db: Session, entity_type: str, entity_id: int) -> list[Document]:
    return (
        db.query(Document)
        .filter(_owner_column(entity_type) == int(entity_id))
        .order_by(Document.category, Document.created_at.desc(), Document.id.desc())
        .all()
    )


def add_document(db: Session, *, entity_type: str, entity_id: int, **fields) -> Document:
    owner = {"student_id": entity_id} if entity_type == "student" else {"employer_id": entity_id}
    doc = Document(**owner, **fields)
    db.add(doc)
    db.flush()
    return doc


def stored_paths_for_user(db: Session, user_id: int) -> list[str]:
    """Every file that disappears when this user's profile is cascaded away."""
    student_ids = db.query(Student.id).filter(Student.user_id == int(user_id))
    employer_ids = db.query(Employer.id).filter(Employer.user_id == int(user_id))
    rows = (
        db.query(Document.stored_rel_path)
        .filter(
            (Document.student_id.in_(student_ids)) | (Document.employer_id.in_(employer_ids))
        )
        .all()
    )
    return [r[0] for r in rows]


def entity_owner_user_id(db: Session, entity_type: str, entity_id: int) -> int | None:
    """user_id of the account that owns a student/employer profile, or None if missing."""
    model = Student if entity_type == "student" else Employer
    row = db.query(model.user_id).filter(model.id == int(entity_id)).first()
    return row[0] if row else None
