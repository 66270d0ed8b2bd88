# services/attendance_management_system/models/attendance.py
from sqlalchemy import Column, ForeignKey, Enum, Text, Index, DateTime, UniqueConstraint, Uuid
from sqlalchemy.sql import func
from shared.db import Base
import enum
import uuid


class AttendanceType(str, enum.Enum):
    ALPHA = "ALPHA"
    SICK = "SICK"
    PERMISSION = "PERMISSION"
    LATE = "LATE"


# Present students have no row at all
PRESENT = "PRESENT"


class StudentAttendance(Base):
    __tablename__ = "student_attendances"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("students.id"), nullable=False)
    # local midnight of the attendance day when written through the service
    date = Column(DateTime, nullable=False)
    type = Column(Enum(AttendanceType), nullable=False)
    description = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index('idx_attendance_date', 'date'),
        Index('idx_attendance_student_date', 'student_id', 'date'),
        UniqueConstraint('student_id', 'date', name='uq_attendance_per_student_per_day'),
    )
