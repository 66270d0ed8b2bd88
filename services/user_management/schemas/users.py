from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from uuid import UUID

from shared.constants import ClassNumber, Grade, Major, Role
from shared.schemas import ClassSelector


class StudentAccountCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)
    class_selector: ClassSelector
    role: Role = Role.STUDENT


class ParentCredentials(BaseModel):
    email: str
    password: str


class StudentAccountOut(BaseModel):
    message: str
    student_id: UUID
    parent_account: ParentCredentials


class TeachingAssignmentIn(BaseModel):
    grade: Grade
    major: Major
    class_number: ClassNumber
    subject_name: str


class TeacherAccountCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: Role = Role.TEACHER
    homeroom_class: Optional[ClassSelector] = None
    teaching_assignments: List[TeachingAssignmentIn] = []


class TeacherAccountOut(BaseModel):
    message: str
    teacher_id: UUID
    teaching_assignments: int


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: UUID
    name: str
    role: Role
