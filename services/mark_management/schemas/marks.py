# services/mark_management/schemas/marks.py

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from services.mark_management.models.marks import AssessmentType
from shared.constants import Semester
from shared.schemas import ClassSelector


def as_local_naive(value: datetime) -> datetime:
    """Timestamps are stored as naive local time."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


class MarkDescriptionIn(BaseModel):
    detail: str = ""
    given_at: datetime
    due_at: datetime

    @field_validator("given_at", "due_at")
    @classmethod
    def _to_local_naive(cls, value: datetime) -> datetime:
        return as_local_naive(value)


class TeacherAssignmentKey(BaseModel):
    teacher_id: UUID
    subject_id: UUID


class MarkColumnCreate(BaseModel):
    class_selector: ClassSelector
    subject_name: str
    description: MarkDescriptionIn
    assessment_type: AssessmentType
    teacher_id: UUID
    subject_id: UUID


class MarkColumnOut(BaseModel):
    message: str
    description_id: UUID
    academic_year: str
    semester: Semester
    created: int
    assessment_numbers: Dict[UUID, int]


class MarkEntryCreate(BaseModel):
    student_id: UUID
    subject_name: str
    description: MarkDescriptionIn
    assessment_type: AssessmentType
    score: Optional[float] = Field(default=None, ge=0, le=100)


class StudentAssessmentScore(BaseModel):
    assessment_number: int = Field(ge=0)
    score: float = Field(ge=0, le=100)


class StudentScoresIn(BaseModel):
    student_id: UUID
    subject_name: str
    assessments: List[StudentAssessmentScore]


class ScoresUpdate(BaseModel):
    students: List[StudentScoresIn]


class ScoresUpdateOut(BaseModel):
    message: str
    updated: int


class MarkOut(BaseModel):
    id: UUID
    assessment_number: int
    type: AssessmentType
    score: Optional[float]
    detail: str
    given_at: datetime
    due_at: datetime

    class Config:
        from_attributes = True


class MarkPage(BaseModel):
    academic_year: str
    semester: Semester
    marks: List[MarkOut]
    total_count: int


class StudentMarksOut(BaseModel):
    id: UUID
    name: str
    marks: List[MarkOut]


class ClassMarksPage(BaseModel):
    academic_year: str
    semester: Semester
    students: List[StudentMarksOut]
    total_count: int


class PeriodBucketsCreate(BaseModel):
    class_selector: ClassSelector


class PeriodBucketsOut(BaseModel):
    message: str
    created: int
