# services/mark_management/api/mark_router.py
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from services.mark_management.controllers.mark_service import (
    append_mark,
    list_class_marks,
    list_marks_for_student_subject,
    open_column_for_class,
    open_period_buckets,
    record_scores,
)
from services.mark_management.schemas.marks import (
    ClassMarksPage,
    MarkColumnCreate,
    MarkColumnOut,
    MarkEntryCreate,
    MarkOut,
    MarkPage,
    PeriodBucketsCreate,
    PeriodBucketsOut,
    ScoresUpdate,
    ScoresUpdateOut,
    TeacherAssignmentKey,
)
from services.user_management.controllers.account_service import get_current_caller
from shared.constants import ClassNumber, Grade, Major, Semester, TEACHER_ROLES
from shared.db import get_db
from shared.errors import BadRequest, Forbidden
from shared.periods import Period
from shared.permissions import Caller, Capability, ResourceOwner, require
from shared.schemas import ClassSelector

router = APIRouter(prefix="/marks", tags=["Marks"])


# --- OPEN AN ASSESSMENT COLUMN FOR A CLASS ---
@router.post("/column", response_model=MarkColumnOut, status_code=status.HTTP_201_CREATED)
async def create_mark_column(
    payload: MarkColumnCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    require(caller, Capability.OPEN_MARK_COLUMN, ResourceOwner(class_selector=payload.class_selector))
    if caller.role in TEACHER_ROLES and payload.teacher_id != caller.user_id:
        raise Forbidden("Teachers can only open columns for their own teaching assignments")

    return await open_column_for_class(
        db,
        payload.class_selector,
        payload.subject_name,
        payload.description,
        payload.assessment_type,
        TeacherAssignmentKey(teacher_id=payload.teacher_id, subject_id=payload.subject_id),
    )


# --- ADD ONE MARK FOR ONE STUDENT ---
@router.post("/entry", response_model=MarkOut, status_code=status.HTTP_201_CREATED)
async def create_mark_entry(
    payload: MarkEntryCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    require(caller, Capability.RECORD_SCORES)
    return await append_mark(
        db,
        payload.student_id,
        payload.subject_name,
        payload.description,
        payload.assessment_type,
        score=payload.score,
    )


# --- UPDATE SCORES ---
@router.patch("/scores", response_model=ScoresUpdateOut)
async def update_scores(
    payload: ScoresUpdate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    require(caller, Capability.RECORD_SCORES)
    if not payload.students:
        raise BadRequest("No scores to update")

    updated = await record_scores(db, payload.students)
    return ScoresUpdateOut(message="Scores updated successfully", updated=updated)


# --- OPEN THE CURRENT SEMESTER'S BUCKETS (staff only) ---
@router.post("/buckets", response_model=PeriodBucketsOut)
async def create_period_buckets(
    payload: PeriodBucketsCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    require(caller, Capability.MANAGE_ACCOUNTS)
    created = await open_period_buckets(db, payload.class_selector)
    return PeriodBucketsOut(message=f"Opened {created} subject marks for {payload.class_selector.label}", created=created)


# --- ONE STUDENT'S MARKS FOR A SUBJECT ---
@router.get("/students/{student_id}", response_model=MarkPage)
async def get_student_marks(
    student_id: uuid.UUID,
    subject_name: str,
    page: int = Query(0, ge=0),
    academic_year: Optional[str] = Query(None, pattern=r"^\d{4}$"),
    semester: Optional[Semester] = None,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    require(caller, Capability.VIEW_STUDENT_RECORDS, ResourceOwner(student_id=student_id))

    period = None
    if academic_year or semester:
        if not (academic_year and semester):
            raise BadRequest("academic_year and semester must be given together")
        period = Period(semester=semester, academic_year=academic_year)

    return await list_marks_for_student_subject(db, student_id, subject_name, page=page, period=period)


# --- A CLASS'S MARKS FOR A SUBJECT ---
@router.get("/class", response_model=ClassMarksPage)
async def get_class_marks(
    grade: Grade,
    major: Major,
    class_number: ClassNumber,
    subject_name: str,
    page: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    selector = ClassSelector(grade=grade, major=major, class_number=class_number)
    require(caller, Capability.VIEW_CLASS_MARKS, ResourceOwner(class_selector=selector))
    return await list_class_marks(db, selector, subject_name, page=page)
