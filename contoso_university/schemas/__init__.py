"""
Public Pydantic schemas used by controllers, API routes and tests.
"""

from .common import ErrorViewModel, MessageResponse  # noqa: F401
from .students import EnrollmentDateGroup, StudentForm  # noqa: F401
