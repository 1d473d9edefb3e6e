from sqlalchemy.orm import Session

from ..models.employer import Employer


def get_employer(db: Session, employer_id: int) -> Employer | None:
    return db.get(Employer, int(employer_id))


def get_employer_by_user(db: Session, user_id: int) -> Employer | None:
    return db.query(Employer).filter(Employer.user_id == int(user_id)).first()


def list_employers(db: Session) -> list[Employer]:
    return db.query(Employer).order_by(Employer.company_name, Employer.id).all()


def add_employer(db: Session, *, user_id: int, **fields) -> Employer:
    employer = Employer(user_id=user_id, **fields)
    db.add(employer)
    db.flush()
    return employer
