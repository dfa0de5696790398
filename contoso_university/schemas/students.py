from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class StudentForm(BaseModel):
    """Posted create/edit student form."""
    model_config = ConfigDict(str_strip_whitespace=True)

    last_name: str = Field(..., min_length=1, max_length=50, description="Last name")
    first_mid_name: str = Field(..., min_length=1, max_length=50, description="First and middle name")
    enrollment_date: date = Field(..., description="Enrollment date (YYYY-MM-DD)")


class EnrollmentDateGroup(BaseModel):
    """Number of students that enrolled on a given date."""
    enrollment_date: date
    student_count: int = Field(..., ge=0)
