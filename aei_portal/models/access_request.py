from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from ..database import Base

REQUEST_TYPES = ("register", "reset_password")
REQUEST_STATUSES = ("open", "closed")


class AccessRequest(Base):
    """Registration / password-reset requests from the public forms, handled by an admin."""

    __tablename__ = "access_requests"
    __table_args__ = (
        CheckConstraint("request_type IN ('register', 'reset_password')", name="ck_access_requests_type"),
        CheckConstraint("status IN ('open', 'closed')", name="ck_access_requests_status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    request_type = Column(String(20), nullable=False)
    email = Column(String(255), index=True, nullable=False)
    requested_role = Column(String(20), nullable=False, default="")
    note = Column(Text, nullable=False, default="")
    status = Column(String(20), nullable=False, default="open")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
