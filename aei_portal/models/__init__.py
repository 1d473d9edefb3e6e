from .access_request import AccessRequest
from .document import Document
from .employer import Employer
from .status_history import StatusHistory
from .student import Student
from .user import User

__all__ = [
    "AccessRequest",
    "Document",
    "Employer",
    "StatusHistory",
    "Student",
    "User",
]
