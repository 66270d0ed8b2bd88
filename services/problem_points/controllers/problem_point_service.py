import enum
import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from services.problem_points.models.problem_points import (
    CATEGORY_LABELS,
    ProblemPoint,
    ProblemPointCategory,
    SINGLE_PER_DAY_CATEGORIES,
)
from services.problem_points.schemas.problem_points import ProblemPointCreateOut, ProblemPointOut, ProblemPointPage
from services.user_management.controllers.student_service import get_student
from services.user_management.models.students import Student
from services.user_management.models.teachers import Teacher
from shared import periods
from shared.config import PAGE_SIZE, PROBLEM_POINT_SINGLE_PER_DAY_POLICY
from shared.db import unit_of_work
from shared.errors import BadRequest, Conflict, NotFound
from shared.pagination import page_window

logger = logging.getLogger(__name__)


class ProblemPointPolicy(str, enum.Enum):
    REJECT = "reject"
    WARN = "warn"


def resolve_policy(value=None) -> ProblemPointPolicy:
    value = value or PROBLEM_POINT_SINGLE_PER_DAY_POLICY
    try:
        return ProblemPointPolicy(str(value).strip().lower())
    except ValueError:
        raise BadRequest(f"Unknown problem point policy: {value}")


# --- RECORD A PROBLEM POINT FOR SEVERAL STUDENTS ---
async def record_problem_points(
    db: AsyncSession,
    teacher_id: UUID,
    student_ids: List[UUID],
    category: ProblemPointCategory,
    point: int,
    description: str,
    problem_date: date,
    policy=None,
    today: Optional[date] = None,
) -> ProblemPointCreateOut:
    policy = resolve_policy(policy)

    teacher = await db.get(Teacher, teacher_id)
    if not teacher:
        raise NotFound("Teacher not found")

    today = today or periods.today()
    semester_range = periods.semester_date_range(today)
    if problem_date not in semester_range:
        semester = periods.resolve_semester(today).semester
        raise BadRequest(
            f"Problem point date is outside the current semester ({semester.value}). "
            f"Allowed range: {semester_range.start.date()} to {semester_range.end.date()}."
        )

    unique_ids = list(dict.fromkeys(student_ids))
    result = await db.execute(select(Student.id, Student.name).where(Student.id.in_(unique_ids)))
    students = {row.id: row.name for row in result.all()}
    missing = [str(student_id) for student_id in unique_ids if student_id not in students]
    if missing:
        raise NotFound(f"Students not found: {', '.join(missing)}")

    bounds = periods.day_bounds(problem_date)
    label = CATEGORY_LABELS[category]
    warnings = []

    async with unit_of_work(db):
        for student_id in unique_ids:
            if category in SINGLE_PER_DAY_CATEGORIES:
                existing = await db.scalar(
                    select(func.count(ProblemPoint.id)).where(
                        ProblemPoint.student_id == student_id,
                        ProblemPoint.category == category,
                        ProblemPoint.date >= bounds.start,
                        ProblemPoint.date <= bounds.end,
                    )
                )
                if existing:
                    message = f'{students[student_id]} already has a "{label}" problem on {problem_date}'
                    if policy == ProblemPointPolicy.REJECT:
                        raise Conflict(message)
                    warnings.append(message)

            db.add(
                ProblemPoint(
                    student_id=student_id,
                    recorded_by=teacher_id,
                    category=category,
                    point=point,
                    description=(description or "").strip(),
                    date=bounds.start,
                )
            )

    logger.info(
        "Recorded %s problem point for %d students (%d warnings)", category.value, len(unique_ids), len(warnings)
    )
    return ProblemPointCreateOut(
        message="Successfully created problem point record",
        created=len(unique_ids),
        warnings=warnings,
    )


async def list_problem_points(
    db: AsyncSession,
    student_id: UUID,
    page: int = 0,
    page_size: int = PAGE_SIZE,
) -> ProblemPointPage:
    await get_student(db, student_id)

    totals = await db.execute(
        select(func.count(ProblemPoint.id), func.coalesce(func.sum(ProblemPoint.point), 0))
        .where(ProblemPoint.student_id == student_id)
    )
    total_count, total_points = totals.one()

    skip, take = page_window(page, page_size)
    result = await db.execute(
        select(ProblemPoint)
        .where(ProblemPoint.student_id == student_id)
        .order_by(ProblemPoint.date.desc(), ProblemPoint.created_at.desc())
        .offset(skip)
        .limit(take)
    )

    return ProblemPointPage(
        student_id=student_id,
        problem_points=[ProblemPointOut.model_validate(row) for row in result.scalars()],
        total_count=total_count,
        total_points=total_points,
    )
