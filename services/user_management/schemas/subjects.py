# services/user_management/schemas/subjects.py

from pydantic import BaseModel
from typing import List
from uuid import UUID

from shared.constants import Semester


class StudentSubjectOut(BaseModel):
    subject_id: UUID
    subject_name: str


class StudentSubjectsOut(BaseModel):
    student_id: UUID
    academic_year: str
    semester: Semester
    subjects: List[StudentSubjectOut]
