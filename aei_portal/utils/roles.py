from fastapi import Depends

from .dependencies import Identity, get_current_user
from .error_handlers import ForbiddenError


def _role_required(required_role: str):
    def check_role(user: Identity = Depends(get_current_user)) -> Identity:
        if user.role != required_role:
            raise ForbiddenError()
        return user
    return check_role


admin_only = _role_required("admin")
student_only = _role_required("student")
employer_only = _role_required("employer")


def require_admin(actor: Identity) -> None:
    """Service-level guard for admin-only operations."""
    if not actor.is_admin:
        raise ForbiddenError()
