# services/attendance_management_system/api/attendance_router.py
import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from services.attendance_management_system.controllers.attendance_service import (
    export_attendance_workbook,
    record_daily_attendance,
    summarize_by_class_on_date,
    summarize_by_student,
    summarize_homeroom_attendance,
)
from services.attendance_management_system.schemas.attendance import (
    ClassAttendancePage,
    DailyAttendanceCreate,
    DailyAttendanceOut,
    HomeroomAttendancePage,
    StudentAttendanceSummary,
)
from services.user_management.controllers.account_service import get_current_caller
from services.user_management.controllers.student_service import get_student
from shared.constants import ClassNumber, Grade, Major
from shared.db import get_db
from shared.errors import BadRequest
from shared.periods import today
from shared.permissions import Caller, Capability, ResourceOwner, require
from shared.schemas import ClassSelector

router = APIRouter(prefix="/attendance", tags=["Attendance"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _requested_class(
    grade: Optional[Grade], major: Optional[Major], class_number: Optional[ClassNumber]
) -> Optional[ClassSelector]:
    if not (grade or major or class_number):
        return None
    if not (grade and major and class_number):
        raise BadRequest("grade, major and class_number must be given together")
    return ClassSelector(grade=grade, major=major, class_number=class_number)


def _resolve_class(caller: Caller, capability: Capability, requested: Optional[ClassSelector]) -> ClassSelector:
    """Explicit class from the request, else the caller's own homeroom class."""
    selector = requested or caller.class_selector
    if selector is None:
        raise BadRequest("No class selected and you have no homeroom class")

    require(caller, capability, ResourceOwner(class_selector=selector))
    return selector


# --- TAKE DAILY ATTENDANCE ---
@router.post("/daily", response_model=DailyAttendanceOut)
async def take_daily_attendance(
    payload: DailyAttendanceCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    selector = _resolve_class(caller, Capability.RECORD_ATTENDANCE, payload.class_selector)
    return await record_daily_attendance(db, selector, payload.date, payload.records)


# --- ONE DAY OF ATTENDANCE FOR A CLASS ---
@router.get("/class", response_model=ClassAttendancePage)
async def get_class_attendance(
    on_date: Optional[date] = Query(None, alias="date"),
    page: int = Query(0, ge=0),
    search_query: Optional[str] = None,
    sort_order: Optional[str] = None,
    grade: Optional[Grade] = None,
    major: Optional[Major] = None,
    class_number: Optional[ClassNumber] = None,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    selector = _resolve_class(caller, Capability.VIEW_CLASS_ATTENDANCE, _requested_class(grade, major, class_number))
    return await summarize_by_class_on_date(
        db,
        selector,
        on_date or today(),
        page=page,
        search_query=search_query,
        sort_order=sort_order,
    )


# --- FULL-HISTORY SUMMARY FOR A CLASS ---
@router.get("/summary", response_model=HomeroomAttendancePage)
async def get_homeroom_summary(
    page: int = Query(0, ge=0),
    search_query: Optional[str] = None,
    sort_order: Optional[str] = None,
    grade: Optional[Grade] = None,
    major: Optional[Major] = None,
    class_number: Optional[ClassNumber] = None,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    selector = _resolve_class(caller, Capability.VIEW_CLASS_ATTENDANCE, _requested_class(grade, major, class_number))
    return await summarize_homeroom_attendance(
        db, selector, page=page, search_query=search_query, sort_order=sort_order
    )


# --- FULL-HISTORY SUMMARY FOR ONE STUDENT ---
@router.get("/students/{student_id}/summary", response_model=StudentAttendanceSummary)
async def get_student_summary(
    student_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    require(caller, Capability.VIEW_STUDENT_RECORDS, ResourceOwner(student_id=student_id))
    student = await get_student(db, student_id)
    summary = await summarize_by_student(db, student_id)
    return StudentAttendanceSummary(student_id=student.id, name=student.name, summary=summary)


# --- EXCEL EXPORT ---
@router.get("/export-excel")
async def export_attendance_to_excel(
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    grade: Optional[Grade] = None,
    major: Optional[Major] = None,
    class_number: Optional[ClassNumber] = None,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    selector = _resolve_class(caller, Capability.VIEW_CLASS_ATTENDANCE, _requested_class(grade, major, class_number))
    content = await export_attendance_workbook(db, selector, from_date, to_date)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="attendance_report.xlsx"'},
    )
