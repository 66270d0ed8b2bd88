# services/user_management/models/students.py
from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Index, String, Uuid
from sqlalchemy.sql import func
from shared.constants import ClassNumber, Grade, Major, Role
from shared.db import Base
import uuid


class Student(Base):
    __tablename__ = "students"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    grade = Column(Enum(Grade), nullable=False)
    major = Column(Enum(Major), nullable=False)
    class_number = Column(Enum(ClassNumber), nullable=False)
    role = Column(Enum(Role), nullable=False, default=Role.STUDENT)
    # weak reference, the homeroom teacher never owns the student row
    homeroom_teacher_id = Column(Uuid, ForeignKey("teachers.id"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        Index("idx_student_class", "grade", "major", "class_number"),
        Index("idx_student_homeroom_teacher", "homeroom_teacher_id"),
    )
