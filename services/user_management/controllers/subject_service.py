# services/user_management/controllers/subject_service.py
from typing import Dict, Iterable, List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from services.user_management.curriculum import is_in_curriculum
from services.user_management.controllers.student_service import get_student
from services.user_management.models.subjects import Subject
from services.user_management.schemas.subjects import StudentSubjectOut, StudentSubjectsOut
from services.mark_management.models.marks import SubjectMark
from shared.errors import BadRequest, NotFound
from shared.periods import current_period
from shared.schemas import ClassSelector


async def get_subject_by_name(db: AsyncSession, subject_name: str) -> Subject:
    result = await db.execute(select(Subject).where(Subject.subject_name == subject_name))
    subject = result.scalar_one_or_none()
    if subject is None:
        raise NotFound(f"Subject {subject_name} not found")
    return subject


async def require_configured_subject(db: AsyncSession, selector: ClassSelector, subject_name: str) -> Subject:
    """Reject subjects that are not taught to the class's grade and major."""
    if not is_in_curriculum(subject_name, selector.grade, selector.major):
        raise BadRequest(f"Subject {subject_name} is not configured for {selector.label}")
    return await get_subject_by_name(db, subject_name)


async def upsert_subjects(db: AsyncSession, subject_names: Iterable[str]) -> Dict[str, Subject]:
    """Create missing catalog entries; caller owns the transaction."""
    names = list(dict.fromkeys(subject_names))
    result = await db.execute(select(Subject).where(Subject.subject_name.in_(names)))
    subjects = {subject.subject_name: subject for subject in result.scalars()}

    for name in names:
        if name not in subjects:
            subject = Subject(subject_name=name)
            db.add(subject)
            subjects[name] = subject

    await db.flush()
    return subjects


async def list_student_subjects(db: AsyncSession, student_id: UUID, today=None) -> StudentSubjectsOut:
    await get_student(db, student_id)

    period = current_period(today)
    result = await db.execute(
        select(Subject.id, Subject.subject_name)
        .join(SubjectMark, SubjectMark.subject_name == Subject.subject_name)
        .where(
            SubjectMark.student_id == student_id,
            SubjectMark.academic_year == period.academic_year,
            SubjectMark.semester == period.semester,
        )
        .order_by(Subject.subject_name)
    )
    subjects: List[StudentSubjectOut] = [
        StudentSubjectOut(subject_id=row.id, subject_name=row.subject_name) for row in result.all()
    ]
    return StudentSubjectsOut(
        student_id=student_id,
        academic_year=period.academic_year,
        semester=period.semester,
        subjects=subjects,
    )
