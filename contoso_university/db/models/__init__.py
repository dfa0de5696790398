"""
ORM models for the school domain: students, courses and enrollments.

Importing this package ensures model classes are registered with the Base
metadata for Alembic and runtime usage.
"""

from .school import (  # noqa: F401
    Course,
    Enrollment,
    Grade,
    Student,
)
