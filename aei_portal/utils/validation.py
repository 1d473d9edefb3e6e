"""
Validation utilities for form input.
"""
import re
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..models.user import ROLES
from .error_handlers import ValidationError

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
MIN_PASSWORD_LENGTH = 8


def validate_email(email: str) -> str:
    """Validate email format."""
    if not email or not isinstance(email, str):
        raise ValidationError("Email is required")

    email = email.strip().lower()
    if len(email) > 255:
        raise ValidationError("Email too long (max 255 characters)")

    if not re.match(EMAIL_PATTERN, email):
        raise ValidationError("Invalid email format")

    return email


def validate_password(password: str) -> None:
    """Validate password strength."""
    if not password or not isinstance(password, str):
        raise ValidationError("Password is required")

    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    # bcrypt's hard limit
    if len(password.encode("utf-8")) > 72:
        raise ValidationError("Password too long (max 72 bytes)")


def validate_string_field(
    value: Any,
    field_name: str,
    min_length: int = 0,
    max_length: int = 255,
    required: bool = False,
) -> str:
    """Trim a free-text form field; empty is allowed unless required."""
    if value is None:
        value = ""

    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be text")

    value = value.strip()

    if required and not value:
        raise ValidationError(f"{field_name} is required")

    if value and len(value) < min_length:
        raise ValidationError(f"{field_name} must be at least {min_length} characters")

    if len(value) > max_length:
        raise ValidationError(f"{field_name} must not exceed {max_length} characters")

    return value


def validate_role(role: str, allowed: tuple[str, ...] = ROLES) -> str:
    """Validate user role."""
    if not role or not isinstance(role, str):
        raise ValidationError("Role is required")

    role = role.strip().lower()
    if role not in allowed:
        raise ValidationError(f"Invalid role. Must be one of: {', '.join(allowed)}")

    return role


def validate_choice(value: Any, field_name: str, choices) -> str:
    """Exact match against a fixed list (statuses, categories, request types)."""
    if not isinstance(value, str) or value.strip() not in choices:
        raise ValidationError(f"Invalid {field_name}. Must be one of: {', '.join(choices)}")
    return value.strip()


def sanitize_filename(filename: str) -> str:
    """Sanitize filename to prevent directory traversal and other attacks."""
    if not filename:
        raise ValidationError("Filename is required")

    # Remove any path separators
    filename = filename.replace("/", "_").replace("\\", "_")

    # Remove any null bytes
    filename = filename.replace("\x00", "")

    # Remove directory traversal sequences
    filename = filename.replace("..", "_")

    # Remove leading dots to prevent hidden files
    filename = filename.lstrip(".")

    if len(filename) > 255:
        raise ValidationError("Filename too long")

    if not filename or filename == "_":
        raise ValidationError("Invalid filename")

    return filename


def slugify(value: str) -> str:
    """'Enrollment Agreement' -> 'enrollment-agreement'"""
    slug = re.sub(r"[^a-z0-9]+", "-", (value or "").lower()).strip("-")
    return slug or "other"


def parse_form(model_cls, data: dict):
    """Validate form data into a pydantic model, surfacing the first problem as a ValidationError."""
    try:
        return model_cls.model_validate(dict(data))
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or "input"
        msg = str(first.get("msg", "is invalid")).removeprefix("Value error, ")
        raise ValidationError(f"{field.replace('_', ' ').capitalize()}: {msg}")
