"""
RAPIDS enrollee / exiter CSV exports.

The header rows are fixed by the external reporting template and must match
byte-for-byte, including order and capitalization.
"""
import csv
import logging
from datetime import date
from io import StringIO

from sqlalchemy.orm import Session

from ..models.student import Student
from ..models.user import User
from ..utils.dependencies import Identity
from ..utils.roles import require_admin

logger = logging.getLogger(__name__)

ENROLLEE_HEADERS = [
    "Program System ID",
    "Provider Program ID",
    "Program Name",
    "Apprentice ID",
    "Apprentice ID Type",
    "First Name",
    "Last Name",
    "Email",
    "Phone",
    "Employer Name",
    "Enrollment Date",
    "Current Level",
    "Enrollment Status",
]

EXITER_HEADERS = [
    "Program System ID",
    "Provider Program ID",
    "Program Name",
    "Apprentice ID",
    "Apprentice ID Type",
    "First Name",
    "Last Name",
    "Enrollment Date",
    "Exit Date",
    "Exit Type",
    "Credential Earned",
]

DATE_FORMAT = "%m/%d/%Y"


def _fmt_date(value: date | None) -> str:
    return value.strftime(DATE_FORMAT) if value else ""


def _students(db: Session, *date_filters):
    return (
        db.query(Student, User.email)
        .join(User, Student.user_id == User.id)
        .filter(*date_filters)
        .order_by(Student.last_name, Student.first_name, Student.id)
        .all()
    )


def _to_csv(headers: list[str], rows) -> str:
    buffer = StringIO()
    # Default dialect: comma-separated, minimal quoting, CRLF line endings.
    writer = csv.writer(buffer)
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue()


def enrollee_rows(db: Session) -> list[list]:
    return [
        [
            s.program_system_id,
            s.provider_program_id,
            s.program_name,
            s.student_id_no,
            s.student_id_type,
            s.first_name,
            s.last_name,
            email,
            s.phone,
            s.employer_name,
            _fmt_date(s.enrollment_date),
            s.level,
            s.status,
        ]
        for s, email in _students(db, Student.enrollment_date.isnot(None))
    ]


def exiter_rows(db: Session) -> list[list]:
    return [
        [
            s.program_system_id,
            s.provider_program_id,
            s.program_name,
            s.student_id_no,
            s.student_id_type,
            s.first_name,
            s.last_name,
            _fmt_date(s.enrollment_date),
            _fmt_date(s.exit_date),
            s.exit_type,
            s.credential,
        ]
        for s, _email in _students(db, Student.exit_date.isnot(None))
    ]


def export_enrollees_csv(db: Session, actor: Identity) -> str:
    require_admin(actor)
    rows = enrollee_rows(db)
    logger.info("User %s exported %d enrollee rows", actor.user_id, len(rows))
    return _to_csv(ENROLLEE_HEADERS, rows)


def export_exiters_csv(db: Session, actor: Identity) -> str:
    require_admin(actor)
    rows = exiter_rows(db)
    logger.info("User %s exported %d exiter rows", actor.user_id, len(rows))
    return _to_csv(EXITER_HEADERS, rows)
