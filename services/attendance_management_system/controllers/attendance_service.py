import logging
from collections import defaultdict
from datetime import date
from io import BytesIO
from typing import Dict, List, Optional
import uuid

import openpyxl
from openpyxl.chart import PieChart, Reference
from openpyxl.styles import Alignment, Font
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from services.attendance_management_system.models.attendance import AttendanceType, PRESENT, StudentAttendance
from services.attendance_management_system.schemas.attendance import (
    AttendanceEntryOut,
    AttendanceStats,
    ClassAttendancePage,
    DailyAttendanceOut,
    HomeroomAttendancePage,
    StudentAttendanceRecord,
    StudentAttendanceSummary,
    StudentDayAttendance,
)
from services.user_management.controllers.student_service import class_filter, get_student, students_in_class
from services.user_management.models.students import Student
from shared import periods
from shared.config import PAGE_SIZE
from shared.db import unit_of_work
from shared.errors import BadRequest, NotFound
from shared.pagination import apply_listing, count_listing
from shared.schemas import ClassSelector

logger = logging.getLogger(__name__)

# Descriptions are dropped for these types
_NO_DESCRIPTION_TYPES = {AttendanceType.ALPHA, AttendanceType.LATE}

_STATUS_CODES = {
    AttendanceType.ALPHA: "A",
    AttendanceType.SICK: "S",
    AttendanceType.PERMISSION: "P",
    AttendanceType.LATE: "L",
}


def normalize_attendance_type(value: str) -> Optional[AttendanceType]:
    """``None`` means present: the student should have no row for that day."""
    normalized = value.strip().upper()
    if normalized == PRESENT:
        return None
    try:
        return AttendanceType(normalized)
    except ValueError:
        valid = ", ".join(t.value for t in AttendanceType)
        raise BadRequest(f'Invalid attendance type: "{value}". Valid types are: {valid}, or "{PRESENT}".')


def _empty_summary() -> Dict[AttendanceType, int]:
    return {attendance_type: 0 for attendance_type in AttendanceType}


async def _class_students_page(
    db: AsyncSession,
    selector: ClassSelector,
    page: int,
    page_size: int,
    search_query: Optional[str],
    sort_order: Optional[str],
):
    stmt = apply_listing(
        select(Student.id, Student.name).where(*class_filter(selector)),
        name_column=Student.name,
        page=page,
        page_size=page_size,
        search_query=search_query,
        sort_order=sort_order,
        tiebreaker=Student.id,
    )
    students = (await db.execute(stmt)).all()

    total_count = await db.scalar(
        count_listing(
            select(func.count(Student.id)).where(*class_filter(selector)),
            name_column=Student.name,
            search_query=search_query,
        )
    )
    return students, total_count or 0


# --- TAKE DAILY ATTENDANCE FOR A CLASS ---
async def record_daily_attendance(
    db: AsyncSession,
    selector: ClassSelector,
    attendance_date: date,
    records: List[StudentAttendanceRecord],
    today: Optional[date] = None,
) -> DailyAttendanceOut:
    """
    Record attendance for one day of ``selector``'s class.
    Only students with a non-present status need a record; PRESENT removes
    whatever was stored for that student on that day.
    """
    if not records:
        return DailyAttendanceOut(message="No records to process.")

    today = today or periods.today()
    if attendance_date > today:
        raise BadRequest("Attendance date cannot be in the future.")

    semester_range = periods.semester_date_range(today)
    if attendance_date not in semester_range:
        semester = periods.resolve_semester(today).semester
        raise BadRequest(
            f"Attendance date is outside the current semester ({semester.value}). "
            f"Allowed range: {semester_range.start.date()} to {semester_range.end.date()}."
        )

    # Validate the whole batch before touching the store
    student_ids = list(dict.fromkeys(record.student_id for record in records))
    result = await db.execute(select(Student).where(Student.id.in_(student_ids)))
    students = {student.id: student for student in result.scalars()}

    errors = []
    normalized = []
    for record in records:
        student = students.get(record.student_id)
        if not student:
            errors.append(f"Student {record.student_id} not found.")
            continue

        if (student.grade, student.major, student.class_number) != (
            selector.grade, selector.major, selector.class_number
        ):
            errors.append(f"Student {record.student_id} is not in your class.")
            continue

        try:
            attendance_type = normalize_attendance_type(record.attendance_type)
        except BadRequest:
            errors.append(f"Invalid attendance type for student {record.student_id}: {record.attendance_type}")
            continue

        description = "" if attendance_type in _NO_DESCRIPTION_TYPES else (record.description or "").strip()
        normalized.append((record.student_id, attendance_type, description))

    if errors:
        raise BadRequest(f"Validation failed for {len(errors)} record(s): {'; '.join(errors)}")

    bounds = periods.day_bounds(attendance_date)
    created = updated = deleted = 0

    async with unit_of_work(db):
        for student_id, attendance_type, description in normalized:
            existing_result = await db.execute(
                select(StudentAttendance).where(
                    StudentAttendance.student_id == student_id,
                    StudentAttendance.date >= bounds.start,
                    StudentAttendance.date <= bounds.end,
                )
            )
            existing = existing_result.scalars().first()

            if attendance_type is None:
                if existing:
                    await db.delete(existing)
                    await db.flush()
                    deleted += 1
            elif existing:
                existing.type = attendance_type
                existing.description = description
                updated += 1
            else:
                db.add(
                    StudentAttendance(
                        student_id=student_id,
                        date=bounds.start,
                        type=attendance_type,
                        description=description,
                    )
                )
                created += 1

    logger.info(
        "Attendance for %s on %s saved (created=%d updated=%d deleted=%d)",
        selector.label, attendance_date, created, updated, deleted,
    )
    return DailyAttendanceOut(
        message=(
            f"Attendance saved successfully. Created: {created}, Updated: {updated}, "
            f"Deleted (marked present): {deleted}"
        ),
        created=created,
        updated=updated,
        deleted=deleted,
    )


# --- FULL-HISTORY SUMMARY FOR ONE STUDENT ---
async def summarize_by_student(db: AsyncSession, student_id: uuid.UUID) -> Dict[AttendanceType, int]:
    await get_student(db, student_id)

    result = await db.execute(
        select(StudentAttendance.type, func.count(StudentAttendance.id))
        .where(StudentAttendance.student_id == student_id)
        .group_by(StudentAttendance.type)
    )
    summary = _empty_summary()
    for attendance_type, count in result.all():
        summary[attendance_type] = count
    return summary


# --- ONE DAY OF ATTENDANCE FOR A CLASS ---
async def summarize_by_class_on_date(
    db: AsyncSession,
    selector: ClassSelector,
    on_date: date,
    page: int = 0,
    page_size: int = PAGE_SIZE,
    search_query: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> ClassAttendancePage:
    bounds = periods.day_bounds(on_date)

    students, total_count = await _class_students_page(db, selector, page, page_size, search_query, sort_order)

    attendances = defaultdict(list)
    if students:
        result = await db.execute(
            select(StudentAttendance)
            .where(
                StudentAttendance.student_id.in_([student.id for student in students]),
                StudentAttendance.date >= bounds.start,
                StudentAttendance.date <= bounds.end,
            )
            .order_by(StudentAttendance.date)
        )
        for row in result.scalars():
            attendances[row.student_id].append(AttendanceEntryOut.model_validate(row))

    # Stats cover the whole class, not just the current page
    stats_result = await db.execute(
        select(StudentAttendance.type, func.count(StudentAttendance.id))
        .join(Student, Student.id == StudentAttendance.student_id)
        .where(
            *class_filter(selector),
            StudentAttendance.date >= bounds.start,
            StudentAttendance.date <= bounds.end,
        )
        .group_by(StudentAttendance.type)
    )
    stats = AttendanceStats()
    for attendance_type, count in stats_result.all():
        setattr(stats, attendance_type.value.lower(), count)

    return ClassAttendancePage(
        class_selector=selector,
        date=bounds.start.date(),
        students=[
            StudentDayAttendance(id=student.id, name=student.name, attendances=attendances[student.id])
            for student in students
        ],
        total_count=total_count,
        stats=stats,
    )


# --- FULL-HISTORY SUMMARY FOR A HOMEROOM CLASS ---
async def summarize_homeroom_attendance(
    db: AsyncSession,
    selector: ClassSelector,
    page: int = 0,
    page_size: int = PAGE_SIZE,
    search_query: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> HomeroomAttendancePage:
    students, total_count = await _class_students_page(db, selector, page, page_size, search_query, sort_order)

    summaries = defaultdict(_empty_summary)
    if students:
        result = await db.execute(
            select(StudentAttendance.student_id, StudentAttendance.type, func.count(StudentAttendance.id))
            .where(StudentAttendance.student_id.in_([student.id for student in students]))
            .group_by(StudentAttendance.student_id, StudentAttendance.type)
        )
        for student_id, attendance_type, count in result.all():
            summaries[student_id][attendance_type] = count

    return HomeroomAttendancePage(
        class_selector=selector,
        students=[
            StudentAttendanceSummary(student_id=student.id, name=student.name, summary=summaries[student.id])
            for student in students
        ],
        total_count=total_count,
    )


# --- EXCEL REPORT FOR A CLASS ---
async def export_attendance_workbook(
    db: AsyncSession,
    selector: ClassSelector,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    today: Optional[date] = None,
) -> bytes:
    semester_range = periods.semester_date_range(today or periods.today())
    start = periods.day_bounds(from_date).start if from_date else semester_range.start
    end = periods.day_bounds(to_date).end if to_date else semester_range.end
    if start > end:
        raise BadRequest("from_date must not be after to_date")

    students = await students_in_class(db, selector)
    if not students:
        raise NotFound("No students found for this class")

    attendance_result = await db.execute(
        select(StudentAttendance).where(
            StudentAttendance.student_id.in_([student.id for student in students]),
            StudentAttendance.date >= start,
            StudentAttendance.date <= end,
        )
    )
    attendance_data = attendance_result.scalars().all()

    # Map: {(student_id, day): type}
    attendance_map = {
        (record.student_id, record.date.date()): record.type
        for record in attendance_data
    }
    all_dates = sorted({record.date.date() for record in attendance_data})

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Attendance Report"

    base_headers = ["No.", "Student Name", "Alpha", "Sick", "Permission", "Late", "Total Absences"]
    date_headers = [f"{d.day}-{d.strftime('%b')}" for d in all_dates]
    ws.append(base_headers + date_headers)
    for cell in ws[1]:
        cell.font = Font(bold=True)
        cell.alignment = Alignment(horizontal="center")

    class_totals = _empty_summary()
    for number, student in enumerate(students, start=1):
        counts = _empty_summary()
        codes = []
        for day in all_dates:
            attendance_type = attendance_map.get((student.id, day))
            if attendance_type is None:
                codes.append("")
                continue
            counts[attendance_type] += 1
            codes.append(_STATUS_CODES[attendance_type])

        ws.append(
            [number, student.name]
            + [counts[attendance_type] for attendance_type in AttendanceType]
            + [sum(counts.values())]
            + codes
        )
        for attendance_type, count in counts.items():
            class_totals[attendance_type] += count

    # Summary block below the student rows
    summary_row_start = len(students) + 3
    ws[f"A{summary_row_start}"] = "Class Summary"
    ws[f"A{summary_row_start}"].font = Font(bold=True)
    ws[f"A{summary_row_start + 1}"] = "Class"
    ws[f"B{summary_row_start + 1}"] = selector.label
    ws[f"A{summary_row_start + 2}"] = "Total Students"
    ws[f"B{summary_row_start + 2}"] = len(students)

    first_total_row = summary_row_start + 3
    for offset, attendance_type in enumerate(AttendanceType):
        ws[f"A{first_total_row + offset}"] = f"Total {attendance_type.value.title()}"
        ws[f"B{first_total_row + offset}"] = class_totals[attendance_type]
    last_total_row = first_total_row + len(AttendanceType) - 1

    chart = PieChart()
    labels = Reference(ws, min_col=1, min_row=first_total_row, max_row=last_total_row)
    data = Reference(ws, min_col=2, min_row=first_total_row, max_row=last_total_row)
    chart.add_data(data, titles_from_data=False)
    chart.set_categories(labels)
    chart.title = "Class Absence Distribution"
    ws.add_chart(chart, f"E{summary_row_start + 1}")

    buffer = BytesIO()
    wb.save(buffer)
    logger.info("Exported attendance for %s (%s to %s)", selector.label, start.date(), end.date())
    return buffer.getvalue()
