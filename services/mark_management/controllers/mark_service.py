# services/mark_management/controllers/mark_service.py
"""Mark ledger.

Every student owns one ``SubjectMark`` bucket per subject and period. Marks
inside a bucket are numbered 0, 1, 2, ... from the bucket's stored counter,
which is bumped with a single ``UPDATE ... RETURNING`` so concurrent writers
never hand out the same number twice.
"""
import logging
from collections import defaultdict
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from services.mark_management.models.marks import AssessmentType, Mark, MarkDescription, SubjectMark
from services.mark_management.schemas.marks import (
    ClassMarksPage,
    MarkColumnOut,
    MarkDescriptionIn,
    MarkOut,
    MarkPage,
    StudentMarksOut,
    StudentScoresIn,
    TeacherAssignmentKey,
)
from services.user_management.controllers.subject_service import (
    get_subject_by_name,
    require_configured_subject,
    upsert_subjects,
)
from services.user_management.curriculum import is_in_curriculum, subjects_for
from services.user_management.controllers.student_service import class_filter, get_student, students_in_class
from services.user_management.models.students import Student
from services.user_management.models.teachers import TeachingAssignment
from shared.config import PAGE_SIZE
from shared.db import unit_of_work
from shared.errors import BadRequest, NotFound
from shared.pagination import page_window
from shared.periods import Period, current_period
from shared.schemas import ClassSelector

logger = logging.getLogger(__name__)


async def find_subject_mark(
    db: AsyncSession, student_id: UUID, subject_name: str, period: Period
) -> Optional[SubjectMark]:
    result = await db.execute(
        select(SubjectMark).where(
            SubjectMark.student_id == student_id,
            SubjectMark.subject_name == subject_name,
            SubjectMark.academic_year == period.academic_year,
            SubjectMark.semester == period.semester,
        )
    )
    return result.scalar_one_or_none()


def _new_subject_mark(student_id: UUID, subject_name: str, period: Period) -> SubjectMark:
    return SubjectMark(
        student_id=student_id,
        subject_name=subject_name,
        academic_year=period.academic_year,
        semester=period.semester,
        next_assessment_number=0,
    )


async def ensure_subject_mark(
    db: AsyncSession, student_id: UUID, subject_name: str, period: Period
) -> SubjectMark:
    """Return the student's bucket for ``period``, creating it on first use."""
    subject_mark = await find_subject_mark(db, student_id, subject_name, period)
    if subject_mark is not None:
        return subject_mark

    subject_mark = _new_subject_mark(student_id, subject_name, period)
    try:
        async with db.begin_nested():
            db.add(subject_mark)
    except IntegrityError:
        # another writer created the bucket after our lookup
        subject_mark = await find_subject_mark(db, student_id, subject_name, period)
        if subject_mark is None:
            raise
        logger.debug("Reusing bucket %s created concurrently", subject_mark.id)
    return subject_mark


async def _reserve_assessment_number(db: AsyncSession, subject_mark_id: UUID) -> int:
    result = await db.execute(
        update(SubjectMark)
        .where(SubjectMark.id == subject_mark_id)
        .values(next_assessment_number=SubjectMark.next_assessment_number + 1)
        .returning(SubjectMark.next_assessment_number)
        .execution_options(synchronize_session=False)
    )
    return result.scalar_one() - 1


async def _create_description(db: AsyncSession, description: MarkDescriptionIn) -> MarkDescription:
    mark_description = MarkDescription(
        detail=description.detail.strip(),
        given_at=description.given_at,
        due_at=description.due_at,
    )
    db.add(mark_description)
    await db.flush()
    return mark_description


def _mark_out(mark: Mark, description: MarkDescription) -> MarkOut:
    return MarkOut(
        id=mark.id,
        assessment_number=mark.assessment_number,
        type=mark.type,
        score=mark.score,
        detail=description.detail,
        given_at=description.given_at,
        due_at=description.due_at,
    )


# --- OPEN A MARK COLUMN FOR A WHOLE CLASS ---
async def open_column_for_class(
    db: AsyncSession,
    selector: ClassSelector,
    subject_name: str,
    description: MarkDescriptionIn,
    assessment_type: AssessmentType,
    teacher_assignment_key: TeacherAssignmentKey,
    today=None,
) -> MarkColumnOut:
    period = current_period(today)

    # Everything that can be rejected up front is checked before the first write
    subject = await require_configured_subject(db, selector, subject_name)
    if subject.id != teacher_assignment_key.subject_id:
        raise BadRequest("Subject does not match the teaching assignment")

    assignment_result = await db.execute(
        select(TeachingAssignment.id).where(
            TeachingAssignment.teacher_id == teacher_assignment_key.teacher_id,
            TeachingAssignment.subject_id == teacher_assignment_key.subject_id,
            TeachingAssignment.grade == selector.grade,
            TeachingAssignment.major == selector.major,
            TeachingAssignment.class_number == selector.class_number,
        )
    )
    assignment_id = assignment_result.scalar_one_or_none()
    if assignment_id is None:
        raise NotFound("Teaching assignment not found for this class and subject")

    students = await students_in_class(db, selector)
    if not students:
        raise NotFound("No active students found in this class")

    assessment_numbers = {}
    try:
        async with unit_of_work(db):
            mark_description = await _create_description(db, description)

            for student in students:
                subject_mark = await find_subject_mark(db, student.id, subject_name, period)
                if subject_mark is None:
                    raise NotFound(
                        f"Subject {subject_name} is not set up for {student.name} "
                        f"in the {period.semester.value} semester of {period.academic_year}"
                    )

                number = await _reserve_assessment_number(db, subject_mark.id)
                db.add(
                    Mark(
                        subject_mark_id=subject_mark.id,
                        description_id=mark_description.id,
                        assessment_number=number,
                        type=assessment_type,
                    )
                )
                assessment_numbers[student.id] = number

            await db.execute(
                update(TeachingAssignment)
                .where(TeachingAssignment.id == assignment_id)
                .values(total_assignments_assigned=TeachingAssignment.total_assignments_assigned + 1)
                .execution_options(synchronize_session=False)
            )
    except Exception as e:
        logger.warning("Mark column for %s %s rolled back: %s", selector.label, subject_name, e)
        raise

    logger.info(
        "Opened %s column for %s in %s (%d students, %s %s)",
        assessment_type.value, subject_name, selector.label, len(students),
        period.semester.value, period.academic_year,
    )
    return MarkColumnOut(
        message=f"Successfully created new {assessment_type.value.lower()} column for subject {subject_name} in {selector.label}",
        description_id=mark_description.id,
        academic_year=period.academic_year,
        semester=period.semester,
        created=len(assessment_numbers),
        assessment_numbers=assessment_numbers,
    )


# --- APPEND A MARK FOR ONE STUDENT ---
async def append_mark(
    db: AsyncSession,
    student_id: UUID,
    subject_name: str,
    description: MarkDescriptionIn,
    assessment_type: AssessmentType,
    score: Optional[float] = None,
    today=None,
) -> MarkOut:
    period = current_period(today)

    student = await get_student(db, student_id)
    if not is_in_curriculum(subject_name, student.grade, student.major):
        raise BadRequest(f"Subject {subject_name} is not configured for this student's grade and major")

    subject_mark = await find_subject_mark(db, student_id, subject_name, period)
    if subject_mark is None:
        raise NotFound(f"Subject {subject_name} is not set up for this student in the current semester")

    async with unit_of_work(db):
        mark_description = await _create_description(db, description)
        number = await _reserve_assessment_number(db, subject_mark.id)
        mark = Mark(
            subject_mark_id=subject_mark.id,
            description_id=mark_description.id,
            assessment_number=number,
            type=assessment_type,
            score=score,
        )
        db.add(mark)

    return _mark_out(mark, mark_description)


# --- RECORD SCORES ON EXISTING MARKS ---
async def record_scores(db: AsyncSession, entries: List[StudentScoresIn], today=None) -> int:
    period = current_period(today)
    updated = 0

    async with unit_of_work(db):
        for entry in entries:
            subject_mark = await find_subject_mark(db, entry.student_id, entry.subject_name, period)
            if subject_mark is None:
                raise NotFound(f"No {entry.subject_name} marks for student {entry.student_id} in the current semester")

            for assessment in entry.assessments:
                result = await db.execute(
                    update(Mark)
                    .where(
                        Mark.subject_mark_id == subject_mark.id,
                        Mark.assessment_number == assessment.assessment_number,
                    )
                    .values(score=assessment.score)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    raise NotFound(
                        f"Assessment {assessment.assessment_number} not found for student {entry.student_id}"
                    )
                updated += 1

    logger.info("Recorded %d scores for %d students", updated, len(entries))
    return updated


# --- OPEN THE CURRENT PERIOD'S BUCKETS FOR A CLASS ---
async def open_period_buckets(db: AsyncSession, selector: ClassSelector, today=None) -> int:
    period = current_period(today)
    subject_names = subjects_for(selector.grade, selector.major)
    if not subject_names:
        raise BadRequest("Subject configuration not found for this grade and major")

    students = await students_in_class(db, selector)
    if not students:
        raise NotFound("No active students found in this class")

    created = 0
    async with unit_of_work(db):
        await upsert_subjects(db, subject_names)
        for student in students:
            for subject_name in subject_names:
                if await find_subject_mark(db, student.id, subject_name, period) is None:
                    db.add(_new_subject_mark(student.id, subject_name, period))
                    created += 1

    logger.info("Opened %d buckets for %s (%s %s)", created, selector.label, period.semester.value, period.academic_year)
    return created


# --- LIST ONE STUDENT'S MARKS FOR A SUBJECT ---
async def list_marks_for_student_subject(
    db: AsyncSession,
    student_id: UUID,
    subject_name: str,
    page: int = 0,
    page_size: int = PAGE_SIZE,
    period: Optional[Period] = None,
    today=None,
) -> MarkPage:
    period = period or current_period(today)

    await get_student(db, student_id)

    subject_mark = await find_subject_mark(db, student_id, subject_name, period)
    if subject_mark is None:
        raise NotFound(f"No {subject_name} marks for this student in the {period.semester.value} semester of {period.academic_year}")

    total_count = await db.scalar(
        select(func.count(Mark.id)).where(Mark.subject_mark_id == subject_mark.id)
    )

    skip, take = page_window(page, page_size)
    result = await db.execute(
        select(Mark, MarkDescription)
        .join(MarkDescription, Mark.description_id == MarkDescription.id)
        .where(Mark.subject_mark_id == subject_mark.id)
        .order_by(Mark.assessment_number)
        .offset(skip)
        .limit(take)
    )

    return MarkPage(
        academic_year=period.academic_year,
        semester=period.semester,
        marks=[_mark_out(mark, description) for mark, description in result.all()],
        total_count=total_count or 0,
    )


# --- LIST A CLASS'S MARKS FOR A SUBJECT ---
async def list_class_marks(
    db: AsyncSession,
    selector: ClassSelector,
    subject_name: str,
    page: int = 0,
    page_size: int = PAGE_SIZE,
    today=None,
) -> ClassMarksPage:
    period = current_period(today)
    await get_subject_by_name(db, subject_name)

    skip, take = page_window(page, page_size)
    students_result = await db.execute(
        select(Student.id, Student.name)
        .where(*class_filter(selector))
        .order_by(Student.name, Student.id)
        .offset(skip)
        .limit(take)
    )
    students = students_result.all()

    total_count = await db.scalar(select(func.count(Student.id)).where(*class_filter(selector)))

    marks_by_student = defaultdict(list)
    if students:
        marks_result = await db.execute(
            select(SubjectMark.student_id, Mark, MarkDescription)
            .join(Mark, Mark.subject_mark_id == SubjectMark.id)
            .join(MarkDescription, Mark.description_id == MarkDescription.id)
            .where(
                SubjectMark.student_id.in_([student.id for student in students]),
                SubjectMark.subject_name == subject_name,
                SubjectMark.academic_year == period.academic_year,
                SubjectMark.semester == period.semester,
            )
            .order_by(Mark.assessment_number)
        )
        for student_id, mark, description in marks_result.all():
            marks_by_student[student_id].append(_mark_out(mark, description))

    return ClassMarksPage(
        academic_year=period.academic_year,
        semester=period.semester,
        students=[
            StudentMarksOut(id=student.id, name=student.name, marks=marks_by_student[student.id])
            for student in students
        ],
        total_count=total_count or 0,
    )
