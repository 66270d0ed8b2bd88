from datetime import date, datetime
from typing import List
from pydantic import BaseModel, Field
import uuid

from services.problem_points.models.problem_points import ProblemPointCategory


class ProblemPointCreate(BaseModel):
    student_ids: List[uuid.UUID] = Field(..., min_length=1)
    category: ProblemPointCategory
    point: int = Field(..., ge=0)
    description: str = ""
    date: date


class ProblemPointCreateOut(BaseModel):
    message: str
    created: int
    warnings: List[str] = []


class ProblemPointOut(BaseModel):
    id: uuid.UUID
    category: ProblemPointCategory
    point: int
    description: str
    date: datetime
    recorded_by: uuid.UUID

    class Config:
        from_attributes = True


class ProblemPointPage(BaseModel):
    student_id: uuid.UUID
    problem_points: List[ProblemPointOut]
    total_count: int
    total_points: int
