from sqlalchemy import BigInteger, CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base

ENTITY_TYPES = ("student", "employer")


class Document(Base):
    __tablename__ = "documents"
    __table_args__ = (
        # A document belongs to exactly one entity.
        CheckConstraint(
            "(student_id IS NOT NULL AND employer_id IS NULL) OR (student_id IS NULL AND employer_id IS NOT NULL)",
            name="ck_documents_single_owner",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), index=True, nullable=True)
    employer_id = Column(Integer, ForeignKey("employers.id", ondelete="CASCADE"), index=True, nullable=True)

    category = Column(String(80), nullable=False)
    title = Column(String(255), nullable=False, default="")
    original_filename = Column(String(255), nullable=False)
    # Relative path under UPLOAD_DIR (portable across machines)
    stored_rel_path = Column(String(500), unique=True, nullable=False)
    mime_type = Column(String(120), nullable=False, default="application/octet-stream")
    size_bytes = Column(BigInteger, nullable=False, default=0)

    uploaded_by_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    student = relationship("Student", back_populates="documents")
    employer = relationship("Employer", back_populates="documents")
    uploaded_by = relationship("User")

    @property
    def entity_type(self) -> str:
        return "student" if self.student_id is not None else "employer"

    @property
    def entity_id(self) -> int:
        return self.student_id if self.student_id is not None else self.employer_id
