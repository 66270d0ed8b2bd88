# services/user_management/models/teachers.py
from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shared.constants import ClassNumber, Grade, Major, Role
from shared.db import Base
import uuid


class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(Enum(Role), nullable=False, default=Role.TEACHER)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    homeroom_class = relationship("HomeroomClass", back_populates="teacher", uselist=False, lazy="selectin")


class HomeroomClass(Base):
    __tablename__ = "homeroom_classes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    teacher_id = Column(Uuid, ForeignKey("teachers.id"), nullable=False)
    grade = Column(Enum(Grade), nullable=False)
    major = Column(Enum(Major), nullable=False)
    class_number = Column(Enum(ClassNumber), nullable=False)

    __table_args__ = (
        UniqueConstraint("teacher_id", name="uq_homeroom_one_class_per_teacher"),
        UniqueConstraint("grade", "major", "class_number", name="uq_homeroom_class_selector"),
    )

    teacher = relationship("Teacher", back_populates="homeroom_class")


class TeachingAssignment(Base):
    __tablename__ = "teaching_assignments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    teacher_id = Column(Uuid, ForeignKey("teachers.id"), nullable=False)
    subject_id = Column(Uuid, ForeignKey("subjects.id"), nullable=False)
    grade = Column(Enum(Grade), nullable=False)
    major = Column(Enum(Major), nullable=False)
    class_number = Column(Enum(ClassNumber), nullable=False)
    # number of assessment columns opened for the whole class
    total_assignments_assigned = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint(
            "teacher_id", "subject_id", "grade", "major", "class_number",
            name="uq_teaching_assignment",
        ),
    )
