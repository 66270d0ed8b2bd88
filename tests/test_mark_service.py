import asyncio
from datetime import date, datetime

import pytest
from sqlalchemy import func, select

from conftest import CLASS_A, CLASS_B, PERIOD, TODAY
from services.mark_management.controllers.mark_service import (
    append_mark,
    ensure_subject_mark,
    find_subject_mark,
    list_class_marks,
    list_marks_for_student_subject,
    open_column_for_class,
    open_period_buckets,
    record_scores,
)
from services.mark_management.models.marks import AssessmentType, Mark, MarkDescription, SubjectMark
from services.mark_management.schemas.marks import (
    MarkDescriptionIn,
    StudentAssessmentScore,
    StudentScoresIn,
    TeacherAssignmentKey,
)
from services.user_management.models.teachers import TeachingAssignment
from shared.constants import Semester
from shared.errors import BadRequest, NotFound
from shared.periods import Period


def _description(detail="Chapter 1 quiz"):
    return MarkDescriptionIn(
        detail=detail,
        given_at=datetime(2024, 3, 11, 8, 0),
        due_at=datetime(2024, 3, 18, 8, 0),
    )


async def _open_column(db, teacher, subjects, selector=CLASS_A, subject_name="web", today=TODAY):
    return await open_column_for_class(
        db,
        selector,
        subject_name,
        _description(),
        AssessmentType.QUIZ,
        TeacherAssignmentKey(teacher_id=teacher.id, subject_id=subjects[subject_name].id),
        today=today,
    )


async def _numbers(db, student_id, subject_name="web"):
    result = await db.execute(
        select(Mark.assessment_number)
        .join(SubjectMark, Mark.subject_mark_id == SubjectMark.id)
        .where(SubjectMark.student_id == student_id, SubjectMark.subject_name == subject_name)
        .order_by(Mark.assessment_number)
    )
    return result.scalars().all()


async def test_ensure_subject_mark_returns_existing_bucket(db, seed):
    (student,) = await seed.students(CLASS_A, ["Alice"], with_buckets=False)
    await seed.subjects(CLASS_A)

    first = await ensure_subject_mark(db, student.id, "web", PERIOD)
    second = await ensure_subject_mark(db, student.id, "web", PERIOD)
    await db.commit()

    assert first.id == second.id
    count = await db.scalar(select(func.count(SubjectMark.id)).where(SubjectMark.student_id == student.id))
    assert count == 1


async def test_ensure_subject_mark_reuses_bucket_created_concurrently(session_factory, seed):
    (student,) = await seed.students(CLASS_A, ["Alice"], with_buckets=False)
    await seed.subjects(CLASS_A)

    async def ensure_in_own_session():
        async with session_factory() as session:
            subject_mark = await ensure_subject_mark(session, student.id, "web", PERIOD)
            await session.commit()
            return subject_mark.id

    first_id, second_id = await asyncio.gather(ensure_in_own_session(), ensure_in_own_session())

    assert first_id == second_id
    async with session_factory() as session:
        count = await session.scalar(select(func.count(SubjectMark.id)).where(SubjectMark.student_id == student.id))
    assert count == 1


async def test_ensure_subject_mark_keeps_periods_apart(db, seed):
    (student,) = await seed.students(CLASS_A, ["Alice"], with_buckets=False)
    await seed.subjects(CLASS_A)

    second = await ensure_subject_mark(db, student.id, "web", Period(Semester.SECOND, "2024"))
    first = await ensure_subject_mark(db, student.id, "web", Period(Semester.FIRST, "2024"))

    assert first.id != second.id


async def test_open_column_numbers_start_at_zero_and_increase(db, seed):
    teacher, subjects, students = await seed.classroom()

    for _ in range(4):
        await _open_column(db, teacher, subjects)

    for student in students:
        assert await _numbers(db, student.id) == [0, 1, 2, 3]


async def test_open_column_reports_every_student_and_bumps_assignment_counter(db, seed):
    teacher, subjects, students = await seed.classroom()

    result = await _open_column(db, teacher, subjects)

    assert result.created == len(students)
    assert result.semester == Semester.SECOND
    assert result.academic_year == "2024"
    assert result.assessment_numbers == {student.id: 0 for student in students}

    counter = await db.scalar(select(TeachingAssignment.total_assignments_assigned))
    assert counter == 1

    descriptions = await db.scalar(select(func.count(MarkDescription.id)))
    assert descriptions == 1


async def test_open_column_keeps_existing_numbering_per_bucket(db, seed):
    teacher, subjects, students = await seed.classroom()
    await append_mark(db, students[0].id, "web", _description("extra"), AssessmentType.ASSIGNMENT, today=TODAY)

    result = await _open_column(db, teacher, subjects)

    assert result.assessment_numbers[students[0].id] == 1
    assert result.assessment_numbers[students[1].id] == 0


async def test_open_column_rejects_subject_outside_curriculum(db, seed):
    teacher, subjects, _ = await seed.classroom()

    with pytest.raises(BadRequest):
        await open_column_for_class(
            db,
            CLASS_A,
            "taxation",
            _description(),
            AssessmentType.EXAM,
            TeacherAssignmentKey(teacher_id=teacher.id, subject_id=subjects["web"].id),
            today=TODAY,
        )


async def test_open_column_requires_teaching_assignment(db, seed):
    teacher, subjects, _ = await seed.classroom()
    other = await seed.teacher(name="Other Teacher")

    with pytest.raises(NotFound):
        await _open_column(db, other, subjects)

    assert await db.scalar(select(func.count(Mark.id))) == 0


async def test_open_column_on_empty_class_is_not_found(db, seed):
    teacher = await seed.teacher(name="Empty Homeroom", homeroom=CLASS_B)
    subjects = await seed.subjects(CLASS_B)
    await seed.teaching_assignment(teacher, subjects["web"], CLASS_B)

    with pytest.raises(NotFound):
        await _open_column(db, teacher, subjects, selector=CLASS_B)


async def test_missing_bucket_rolls_back_the_whole_column(db, seed):
    teacher, subjects, students = await seed.classroom(names=("Alice", "Budi"))
    # "Zaki" sorts last, so earlier students are written before the failure
    await seed.students(CLASS_A, ["Zaki"], with_buckets=False)

    with pytest.raises(NotFound):
        await _open_column(db, teacher, subjects)

    assert await db.scalar(select(func.count(Mark.id))) == 0
    assert await db.scalar(select(func.count(MarkDescription.id))) == 0
    assert await db.scalar(select(TeachingAssignment.total_assignments_assigned)) == 0
    counters = (await db.execute(select(SubjectMark.next_assessment_number))).scalars().all()
    assert set(counters) == {0}


async def test_concurrent_columns_never_share_an_assessment_number(session_factory, seed):
    teacher, subjects, students = await seed.classroom()

    async def open_in_own_session():
        async with session_factory() as session:
            return await _open_column(session, teacher, subjects)

    results = await asyncio.gather(open_in_own_session(), open_in_own_session(), return_exceptions=True)
    succeeded = [result for result in results if not isinstance(result, Exception)]
    assert succeeded

    async with session_factory() as session:
        for student in students:
            numbers = await _numbers(session, student.id)
            assert numbers == list(range(len(succeeded)))


async def test_record_scores_updates_existing_marks(db, seed):
    teacher, subjects, students = await seed.classroom()
    await _open_column(db, teacher, subjects)
    await _open_column(db, teacher, subjects)

    updated = await record_scores(
        db,
        [
            StudentScoresIn(
                student_id=students[0].id,
                subject_name="web",
                assessments=[
                    StudentAssessmentScore(assessment_number=0, score=80),
                    StudentAssessmentScore(assessment_number=1, score=95.5),
                ],
            )
        ],
        today=TODAY,
    )

    assert updated == 2
    page = await list_marks_for_student_subject(db, students[0].id, "web", today=TODAY)
    assert [mark.score for mark in page.marks] == [80, 95.5]


async def test_record_scores_aborts_on_unknown_assessment(db, seed):
    teacher, subjects, students = await seed.classroom()
    await _open_column(db, teacher, subjects)

    with pytest.raises(NotFound):
        await record_scores(
            db,
            [
                StudentScoresIn(
                    student_id=students[0].id,
                    subject_name="web",
                    assessments=[
                        StudentAssessmentScore(assessment_number=0, score=70),
                        StudentAssessmentScore(assessment_number=5, score=70),
                    ],
                )
            ],
            today=TODAY,
        )

    scores = (await db.execute(select(Mark.score))).scalars().all()
    assert all(score is None for score in scores)


async def test_list_marks_pages_in_assessment_order(db, seed):
    teacher, subjects, students = await seed.classroom()
    for _ in range(3):
        await _open_column(db, teacher, subjects)

    page = await list_marks_for_student_subject(db, students[0].id, "web", page=1, page_size=2, today=TODAY)

    assert page.total_count == 3
    assert [mark.assessment_number for mark in page.marks] == [2]
    assert page.marks[0].detail == "Chapter 1 quiz"


async def test_list_marks_for_another_period_is_not_found(db, seed):
    _, _, students = await seed.classroom()

    with pytest.raises(NotFound):
        await list_marks_for_student_subject(
            db, students[0].id, "web", period=Period(Semester.FIRST, "2023"), today=TODAY
        )


async def test_list_class_marks_groups_marks_per_student(db, seed):
    teacher, subjects, students = await seed.classroom()
    await _open_column(db, teacher, subjects)

    page = await list_class_marks(db, CLASS_A, "web", today=TODAY)

    assert page.total_count == 3
    assert [student.name for student in page.students] == ["Alice", "Budi", "Citra"]
    assert all(len(student.marks) == 1 for student in page.students)


async def test_open_period_buckets_is_idempotent(db, seed):
    await seed.subjects(CLASS_A)
    students = await seed.students(CLASS_A, ["Alice", "Budi"], with_buckets=False)
    next_semester = date(2024, 8, 1)

    created = await open_period_buckets(db, CLASS_A, today=next_semester)
    again = await open_period_buckets(db, CLASS_A, today=next_semester)

    assert created == len(students) * 13
    assert again == 0
    bucket = await find_subject_mark(db, students[0].id, "web", Period(Semester.FIRST, "2024"))
    assert bucket is not None
