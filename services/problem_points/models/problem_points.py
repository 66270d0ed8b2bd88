# services/problem_points/models/problem_points.py
from sqlalchemy import Column, ForeignKey, Enum, Integer, Text, Index, DateTime, Uuid
from sqlalchemy.sql import func
from shared.db import Base
import enum
import uuid


class ProblemPointCategory(str, enum.Enum):
    LATE = "LATE"
    INCOMPLETE_ATTRIBUTES = "INCOMPLETE_ATTRIBUTES"
    DISCIPLINE = "DISCIPLINE"
    ACADEMIC = "ACADEMIC"
    SOCIAL = "SOCIAL"
    OTHER = "OTHER"


# At most one record per student per day for these
SINGLE_PER_DAY_CATEGORIES = frozenset({
    ProblemPointCategory.LATE,
    ProblemPointCategory.INCOMPLETE_ATTRIBUTES,
})

CATEGORY_LABELS = {
    ProblemPointCategory.LATE: "Late",
    ProblemPointCategory.INCOMPLETE_ATTRIBUTES: "Incomplete attributes",
    ProblemPointCategory.DISCIPLINE: "Discipline",
    ProblemPointCategory.ACADEMIC: "Academic",
    ProblemPointCategory.SOCIAL: "Social",
    ProblemPointCategory.OTHER: "Other",
}


class ProblemPoint(Base):
    __tablename__ = "problem_points"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("students.id"), nullable=False)
    recorded_by = Column(Uuid, ForeignKey("teachers.id"), nullable=False)
    category = Column(Enum(ProblemPointCategory), nullable=False)
    point = Column(Integer, nullable=False)
    description = Column(Text, nullable=False, default="")
    date = Column(DateTime, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index('idx_problem_point_student_date', 'student_id', 'date'),
    )
