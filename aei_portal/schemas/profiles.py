from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.student import MAX_LEVEL, MIN_LEVEL


class _FormModel(BaseModel):
    # HTML forms send "" for untouched inputs and may carry extra keys (buttons, tokens).
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class StudentProfileIn(_FormModel):
    first_name: str = Field(default="", max_length=120)
    last_name: str = Field(default="", max_length=120)
    phone: str = Field(default="", max_length=40)
    employer_name: str = Field(default="", max_length=255)
    level: int = MIN_LEVEL

    program_name: str = Field(default="", max_length=255)
    provider_program_id: str = Field(default="", max_length=80)
    program_system_id: str = Field(default="", max_length=80)
    student_id_no: str = Field(default="", max_length=80)
    student_id_type: str = Field(default="", max_length=40)
    enrollment_date: date | None = None
    exit_date: date | None = None
    exit_type: str = Field(default="", max_length=80)
    credential: str = Field(default="", max_length=255)

    @field_validator("enrollment_date", "exit_date", mode="before")
    @classmethod
    def _blank_date(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("level")
    @classmethod
    def _level_in_range(cls, v: int) -> int:
        if v < MIN_LEVEL or v > MAX_LEVEL:
            raise ValueError(f"Level must be between {MIN_LEVEL} and {MAX_LEVEL}")
        return v


# What a student may change on their own record. Status, level and RAPIDS fields stay admin-only.
STUDENT_SELF_EDITABLE = ("first_name", "last_name", "phone")


class EmployerProfileIn(_FormModel):
    company_name: str = Field(default="", max_length=255)
    contact_name: str = Field(default="", max_length=255)
    phone: str = Field(default="", max_length=40)
