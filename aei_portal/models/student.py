from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base

PENDING_ENROLLMENT = "Pending Enrollment"
ACTIVE = "Active"
ON_HOLD = "On Hold"
COMPLETED = "Completed"
WITHDRAWN = "Withdrawn"
PENDING_REENROLLMENT = "Pending Re-Enrollment"

# Values an admin may pick from the status dropdown.
STUDENT_STATUSES = (PENDING_ENROLLMENT, ACTIVE, ON_HOLD, COMPLETED, WITHDRAWN)
# Everything the column may hold; Pending Re-Enrollment is only reachable via level auto-advance.
STORED_STATUSES = STUDENT_STATUSES + (PENDING_REENROLLMENT,)

MIN_LEVEL = 1
MAX_LEVEL = 4

_status_list = ", ".join(f"'{s}'" for s in STORED_STATUSES)


class Student(Base):
    __tablename__ = "students"
    __table_args__ = (
        CheckConstraint(f"level BETWEEN {MIN_LEVEL} AND {MAX_LEVEL}", name="ck_students_level"),
        CheckConstraint(f"status IN ({_status_list})", name="ck_students_status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    first_name = Column(String(120), nullable=False, default="")
    last_name = Column(String(120), nullable=False, default="")
    phone = Column(String(40), nullable=False, default="")
    employer_name = Column(String(255), nullable=False, default="")

    level = Column(Integer, nullable=False, default=MIN_LEVEL)
    status = Column(String(40), nullable=False, default=PENDING_ENROLLMENT)

    # RAPIDS compliance fields
    program_name = Column(String(255), nullable=False, default="")
    provider_program_id = Column(String(80), nullable=False, default="")
    program_system_id = Column(String(80), nullable=False, default="")
    student_id_no = Column(String(80), nullable=False, default="")
    student_id_type = Column(String(40), nullable=False, default="")
    enrollment_date = Column(Date, nullable=True)
    exit_date = Column(Date, nullable=True)
    exit_type = Column(String(80), nullable=False, default="")
    credential = Column(String(255), nullable=False, default="")

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="student")
    history = relationship(
        "StatusHistory",
        back_populates="student",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="StatusHistory.id",
    )
    documents = relationship(
        "Document",
        back_populates="student",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
