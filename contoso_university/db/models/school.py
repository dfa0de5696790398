from __future__ import annotations

import enum
from datetime import date
from typing import List, Optional

from sqlalchemy import Date, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from contoso_university.db.base import Base, IntPkMixin


class Grade(str, enum.Enum):
    """Letter grade of an enrollment."""
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"


class Student(IntPkMixin, Base):
    """Student enrolled at the university."""
    __tablename__ = "students"

    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    first_mid_name: Mapped[str] = mapped_column(String(50), nullable=False)
    enrollment_date: Mapped[date] = mapped_column(Date, nullable=False)

    enrollments: Mapped[List["Enrollment"]] = relationship(
        back_populates="student",
        cascade="all, delete-orphan",
    )

    @property
    def full_name(self) -> str:
        return f"{self.last_name}, {self.first_mid_name}"


class Course(Base):
    """Course offered by the university. The id is assigned by the school, not the database."""
    __tablename__ = "courses"

    course_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(String(50), nullable=False)
    credits: Mapped[int] = mapped_column(nullable=False)

    enrollments: Mapped[List["Enrollment"]] = relationship(
        back_populates="course",
        cascade="all, delete-orphan",
    )


class Enrollment(IntPkMixin, Base):
    """A student's enrollment in a course, with an optional grade."""
    __tablename__ = "enrollments"

    course_id: Mapped[int] = mapped_column(
        ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id: Mapped[int] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    grade: Mapped[Optional[Grade]] = mapped_column(
        Enum(Grade, name="grade", native_enum=False, length=1), nullable=True
    )

    course: Mapped[Course] = relationship(back_populates="enrollments")
    student: Mapped[Student] = relationship(back_populates="enrollments")
