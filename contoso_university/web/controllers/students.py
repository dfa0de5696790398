from __future__ import annotations

import logging
from typing import Optional

from fastapi.responses import Response
from sqlalchemy.exc import SQLAlchemyError

from contoso_university.db.models import Student
from contoso_university.repositories.students import (
    SORT_DATE,
    SORT_DATE_DESC,
    SORT_NAME_DESC,
    StudentRepository,
)
from contoso_university.schemas.students import StudentForm
from .base import Controller, action, http_post

logger = logging.getLogger(__name__)

SAVE_ERROR_MESSAGE = (
    "Unable to save changes. Try again, and if the problem persists "
    "see your system administrator."
)
DELETE_ERROR_MESSAGE = (
    "Delete failed. Try again, and if the problem persists "
    "see your system administrator."
)


class StudentsController(Controller):
    """Student list, details and create/edit/delete forms."""

    @property
    def students(self) -> StudentRepository:
        return StudentRepository(self.db)

    @action()
    async def index(
        self, sort_order: Optional[str] = None, search_string: Optional[str] = None
    ) -> Response:
        students = await self.students.list_students(search=search_string, sort_order=sort_order)
        return self.view(
            "index",
            students,
            current_filter=search_string or "",
            name_sort=SORT_NAME_DESC if not sort_order else "",
            date_sort=SORT_DATE_DESC if sort_order == SORT_DATE else SORT_DATE,
        )

    @action()
    async def details(self, id: Optional[int] = None) -> Response:
        if id is None:
            return self.not_found()
        student = await self.students.get_student(id, include_enrollments=True)
        if student is None:
            return self.not_found()
        return self.view("details", student)

    @action()
    async def create(self) -> Response:
        return self.view("create")

    @http_post("Create")
    async def create_post(self) -> Response:
        form = await self.try_bind_form(StudentForm)
        if form is None:
            return self.view("create")

        repo = self.students
        try:
            await repo.add(Student(**form.model_dump()))
            await repo.commit()
        except SQLAlchemyError:
            logger.exception("Failed to create student")
            await repo.rollback()
            self.add_model_error("", SAVE_ERROR_MESSAGE)
            return self.view("create")
        return self.redirect_to_action("Index")

    @action()
    async def edit(self, id: Optional[int] = None) -> Response:
        if id is None:
            return self.not_found()
        student = await self.students.get_student(id)
        if student is None:
            return self.not_found()
        self.form_values = {
            "last_name": student.last_name,
            "first_mid_name": student.first_mid_name,
            "enrollment_date": student.enrollment_date.isoformat(),
        }
        return self.view("edit", student)

    @http_post("Edit")
    async def edit_post(self, id: Optional[int] = None) -> Response:
        if id is None:
            return self.not_found()
        repo = self.students
        student = await repo.get_student(id)
        if student is None:
            return self.not_found()

        form = await self.try_bind_form(StudentForm)
        if form is None:
            return self.view("edit", student)

        for field, value in form.model_dump().items():
            setattr(student, field, value)
        try:
            await repo.commit()
        except SQLAlchemyError:
            logger.exception("Failed to update student %s", id)
            await repo.rollback()
            self.add_model_error("", SAVE_ERROR_MESSAGE)
            return self.view("edit", student)
        return self.redirect_to_action("Index")

    @action()
    async def delete(self, id: Optional[int] = None, save_changes_error: bool = False) -> Response:
        if id is None:
            return self.not_found()
        student = await self.students.get_student(id)
        if student is None:
            return self.not_found()
        error_message = DELETE_ERROR_MESSAGE if save_changes_error else None
        return self.view("delete", student, error_message=error_message)

    @http_post("Delete")
    async def delete_confirmed(self, id: Optional[int] = None) -> Response:
        if id is None:
            return self.not_found()
        repo = self.students
        student = await repo.get_student(id)
        if student is None:
            return self.redirect_to_action("Index")
        try:
            await repo.delete(student)
            await repo.commit()
        except SQLAlchemyError:
            logger.exception("Failed to delete student %s", id)
            await repo.rollback()
            return self.redirect_to_action("Delete", id=id, save_changes_error=True)
        return self.redirect_to_action("Index")
