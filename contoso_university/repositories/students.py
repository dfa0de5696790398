from __future__ import annotations

from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import selectinload

from contoso_university.db.models import Enrollment, Student
from contoso_university.schemas.students import EnrollmentDateGroup
from .base import BaseRepository

# sort_order values understood by list_students
SORT_NAME_DESC = "name_desc"
SORT_DATE = "Date"
SORT_DATE_DESC = "date_desc"


class StudentRepository(BaseRepository):
    """Repository for Students and their enrollments."""

    async def list_students(
        self, *, search: Optional[str] = None, sort_order: Optional[str] = None
    ) -> List[Student]:
        stmt = select(Student)
        if search:
            # Wildcards typed by the user match literally.
            escaped = search.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            like = f"%{escaped}%"
            stmt = stmt.where(
                or_(
                    Student.last_name.ilike(like, escape="\\"),
                    Student.first_mid_name.ilike(like, escape="\\"),
                )
            )
        if sort_order == SORT_NAME_DESC:
            stmt = stmt.order_by(Student.last_name.desc(), Student.id)
        elif sort_order == SORT_DATE:
            stmt = stmt.order_by(Student.enrollment_date.asc(), Student.id)
        elif sort_order == SORT_DATE_DESC:
            stmt = stmt.order_by(Student.enrollment_date.desc(), Student.id)
        else:
            stmt = stmt.order_by(Student.last_name.asc(), Student.id)
        res = await self.scalars(stmt)
        return list(res)

    async def get_student(self, student_id: int, *, include_enrollments: bool = False) -> Optional[Student]:
        stmt = select(Student).where(Student.id == student_id)
        if include_enrollments:
            stmt = stmt.options(
                selectinload(Student.enrollments).selectinload(Enrollment.course)
            )
        return await self.scalar_one_or_none(stmt)

    async def count(self) -> int:
        res = await self.execute(select(func.count(Student.id)))
        return int(res.scalar_one())

    async def enrollment_date_groups(self) -> List[EnrollmentDateGroup]:
        """Number of students per enrollment date, oldest first."""
        stmt = (
            select(Student.enrollment_date, func.count(Student.id))
            .group_by(Student.enrollment_date)
            .order_by(Student.enrollment_date)
        )
        res = await self.execute(stmt)
        return [
            EnrollmentDateGroup(enrollment_date=enrollment_date, student_count=count)
            for enrollment_date, count in res.all()
        ]
