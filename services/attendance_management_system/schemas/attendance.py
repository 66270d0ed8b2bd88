from datetime import date, datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field
import uuid

from services.attendance_management_system.models.attendance import AttendanceType
from shared.schemas import ClassSelector


class StudentAttendanceRecord(BaseModel):
    student_id: uuid.UUID
    # one of AttendanceType or "PRESENT", case-insensitive
    attendance_type: str
    description: Optional[str] = None


class DailyAttendanceCreate(BaseModel):
    date: date
    # staff without a homeroom class name the class explicitly
    class_selector: Optional[ClassSelector] = None
    records: List[StudentAttendanceRecord] = Field(
        default_factory=list,
        description="Students with a non-present status. PRESENT clears an existing record for that day."
    )


class DailyAttendanceOut(BaseModel):
    message: str
    created: int = 0
    updated: int = 0
    deleted: int = 0


class AttendanceEntryOut(BaseModel):
    date: datetime
    type: AttendanceType
    description: str

    class Config:
        from_attributes = True


class StudentDayAttendance(BaseModel):
    id: uuid.UUID
    name: str
    attendances: List[AttendanceEntryOut]


class AttendanceStats(BaseModel):
    sick: int = 0
    permission: int = 0
    alpha: int = 0
    late: int = 0


class ClassAttendancePage(BaseModel):
    class_selector: ClassSelector
    date: date
    students: List[StudentDayAttendance]
    total_count: int
    stats: AttendanceStats


class StudentAttendanceSummary(BaseModel):
    student_id: uuid.UUID
    name: str
    summary: Dict[AttendanceType, int]


class HomeroomAttendancePage(BaseModel):
    class_selector: ClassSelector
    students: List[StudentAttendanceSummary]
    total_count: int
