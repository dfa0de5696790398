"""
Database initializer for the school database.

Creates the schema if it does not exist and seeds it once with:
- 8 students
- 7 courses
- 12 enrollments

Running it again against a database that already has students is a no-op.

Usage:
  python -m contoso_university.db.seed
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from contoso_university.db.base import Base
from contoso_university.db.models import Course, Enrollment, Grade, Student

logger = logging.getLogger(__name__)

STUDENTS: List[Tuple[str, str, date]] = [
    ("Carson", "Alexander", date(2005, 9, 1)),
    ("Meredith", "Alonso", date(2002, 9, 1)),
    ("Arturo", "Anand", date(2003, 9, 1)),
    ("Gytis", "Barzdukas", date(2002, 9, 1)),
    ("Yan", "Li", date(2002, 9, 1)),
    ("Peggy", "Justice", date(2001, 9, 1)),
    ("Laura", "Norman", date(2003, 9, 1)),
    ("Nino", "Olivetto", date(2005, 9, 1)),
]

COURSES: List[Tuple[int, str, int]] = [
    (1050, "Chemistry", 3),
    (4022, "Microeconomics", 3),
    (4041, "Macroeconomics", 3),
    (1045, "Calculus", 4),
    (3141, "Trigonometry", 4),
    (2021, "Composition", 3),
    (2042, "Literature", 4),
]

# (student last name, course id, grade)
ENROLLMENTS: List[Tuple[str, int, Optional[Grade]]] = [
    ("Alexander", 1050, Grade.A),
    ("Alexander", 4022, Grade.C),
    ("Alexander", 4041, Grade.B),
    ("Alonso", 1045, Grade.B),
    ("Alonso", 3141, Grade.F),
    ("Alonso", 2021, Grade.F),
    ("Anand", 1050, None),
    ("Barzdukas", 1050, None),
    ("Barzdukas", 4022, Grade.F),
    ("Li", 4041, Grade.C),
    ("Justice", 1045, None),
    ("Norman", 3141, Grade.A),
]


# PUBLIC_INTERFACE
async def initialize(session: AsyncSession) -> None:
    """
    Ensure the schema exists and seed it if the database has no students.

    Safe to call on every startup. Raises whatever the database raises; the
    caller decides whether that is fatal.
    """
    conn = await session.connection()
    await conn.run_sync(Base.metadata.create_all)

    existing = await session.scalar(select(Student.id).limit(1))
    if existing is not None:
        logger.info("Database already seeded; skipping.")
        await session.commit()
        return

    students = _seed_students(session)
    courses = _seed_courses(session)
    _seed_enrollments(session, students, courses)

    await session.commit()
    logger.info(
        "Seeded %d students, %d courses and %d enrollments.",
        len(STUDENTS),
        len(COURSES),
        len(ENROLLMENTS),
    )


def _seed_students(session: AsyncSession) -> Dict[str, Student]:
    students: Dict[str, Student] = {}
    for first_mid_name, last_name, enrollment_date in STUDENTS:
        student = Student(
            first_mid_name=first_mid_name,
            last_name=last_name,
            enrollment_date=enrollment_date,
        )
        session.add(student)
        students[last_name] = student
    return students


def _seed_courses(session: AsyncSession) -> Dict[int, Course]:
    courses: Dict[int, Course] = {}
    for course_id, title, credits in COURSES:
        course = Course(course_id=course_id, title=title, credits=credits)
        session.add(course)
        courses[course_id] = course
    return courses


def _seed_enrollments(
    session: AsyncSession,
    students: Dict[str, Student],
    courses: Dict[int, Course],
) -> None:
    for last_name, course_id, grade in ENROLLMENTS:
        session.add(
            Enrollment(student=students[last_name], course=courses[course_id], grade=grade)
        )


async def _run() -> None:
    from contoso_university.core.settings import load_settings
    from contoso_university.db.session import DatabaseContextFactory

    settings = load_settings()
    factory = DatabaseContextFactory(settings.connection_string, echo=settings.SQL_ECHO)
    try:
        async with factory.create_context() as session:
            await initialize(session)
    finally:
        await factory.dispose()


# PUBLIC_INTERFACE
def main() -> None:
    """Entrypoint to run the asynchronous seeding."""
    asyncio.run(_run())


if __name__ == "__main__":
    main()
