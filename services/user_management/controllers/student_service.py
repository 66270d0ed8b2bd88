# services/user_management/controllers/student_service.py
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from services.user_management.models.students import Student
from shared.errors import NotFound
from shared.schemas import ClassSelector


def class_filter(selector: ClassSelector):
    return (
        Student.grade == selector.grade,
        Student.major == selector.major,
        Student.class_number == selector.class_number,
        Student.is_active == True,  # noqa: E712
    )


def selector_of(student: Student) -> ClassSelector:
    return ClassSelector(grade=student.grade, major=student.major, class_number=student.class_number)


async def get_student(db: AsyncSession, student_id: UUID) -> Student:
    student = await db.get(Student, student_id)
    if not student:
        raise NotFound("Student not found")
    return student


async def students_in_class(db: AsyncSession, selector: ClassSelector) -> List[Student]:
    result = await db.execute(
        select(Student).where(*class_filter(selector)).order_by(Student.name, Student.id)
    )
    return result.scalars().all()
