from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..models.status_history import StatusHistory
from ..models.student import Student
from ..models.user import User


def get_student(db: Session, student_id: int, *, for_update: bool = False) -> Student | None:
    q = db.query(Student).filter(Student.id == int(student_id))
    if for_update:
        # SQLite ignores FOR UPDATE; Postgres/MySQL serialize concurrent transitions on the row.
        q = q.with_for_update()
    return q.first()


def get_student_by_user(db: Session, user_id: int) -> Student | None:
    return db.query(Student).filter(Student.user_id == int(user_id)).first()


def list_students(db: Session, *, status: str | None = None, search: str | None = None) -> list[Student]:
    q = db.query(Student).join(User, Student.user_id == User.id)
    if status:
        q = q.filter(Student.status == status)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(
            or_(
                Student.first_name.ilike(like),
                Student.last_name.ilike(like),
                User.email.ilike(like),
                Student.employer_name.ilike(like),
            )
        )
    return q.order_by(Student.last_name, Student.first_name, Student.id).all()


def add_student(db: Session, *, user_id: int, **fields) -> Student:
    student = Student(user_id=user_id, **fields)
    db.add(student)
    db.flush()
    return student


def append_history(
    db: Session,
    *,
    student_id: int,
    old_status: str,
    new_status: str,
    changed_by_user_id: int | None,
) -> StatusHistory:
    row = StatusHistory(
        student_id=student_id,
        old_status=old_status,
        new_status=new_status,
        changed_by_user_id=changed_by_user_id,
    )
    db.add(row)
    db.flush()
    return row


def list_history(db: Session, student_id: int) -> list[StatusHistory]:
    return (
        db.query(StatusHistory)
        .filter(StatusHistory.student_id == int(student_id))
        .order_by(StatusHistory.id.asc())
        .all()
    )


def count_history(db: Session, student_id: int) -> int:
    return db.query(StatusHistory).filter(StatusHistory.student_id == int(student_id)).count()
