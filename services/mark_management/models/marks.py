# services/mark_management/models/marks.py
from sqlalchemy import (
    Column, DateTime, Enum, Float, ForeignKey, Index, Integer, String, Text, UniqueConstraint, Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shared.constants import Semester
from shared.db import Base
import enum
import uuid


class AssessmentType(str, enum.Enum):
    QUIZ = "QUIZ"
    ASSIGNMENT = "ASSIGNMENT"
    EXAM = "EXAM"


class SubjectMark(Base):
    """Ledger bucket: one per student, subject, academic year and semester."""

    __tablename__ = "subject_marks"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("students.id"), nullable=False)
    subject_name = Column(String(100), ForeignKey("subjects.subject_name"), nullable=False)
    academic_year = Column(String(4), nullable=False)
    semester = Column(Enum(Semester), nullable=False)
    # next assessment number to hand out, only ever bumped by an atomic UPDATE
    next_assessment_number = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("student_id", "subject_name", "academic_year", "semester", name="uq_subject_mark_period"),
        Index("idx_subject_mark_student", "student_id"),
    )

    marks = relationship(
        "Mark",
        back_populates="subject_mark",
        order_by="Mark.assessment_number",
        cascade="all, delete-orphan",
    )


class MarkDescription(Base):
    __tablename__ = "mark_descriptions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    detail = Column(Text, nullable=False, default="")
    given_at = Column(DateTime, nullable=False)
    due_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Mark(Base):
    __tablename__ = "marks"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    subject_mark_id = Column(Uuid, ForeignKey("subject_marks.id"), nullable=False)
    description_id = Column(Uuid, ForeignKey("mark_descriptions.id"), nullable=False)
    assessment_number = Column(Integer, nullable=False)
    type = Column(Enum(AssessmentType), nullable=False)
    score = Column(Float, nullable=True)

    __table_args__ = (
        UniqueConstraint("subject_mark_id", "assessment_number", name="uq_mark_bucket_assessment"),
    )

    subject_mark = relationship("SubjectMark", back_populates="marks")
    description = relationship("MarkDescription")
