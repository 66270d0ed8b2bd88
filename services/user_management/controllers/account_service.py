# services/user_management/controllers/account_service.py
import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from services.mark_management.controllers.mark_service import ensure_subject_mark
from services.user_management.controllers.student_service import selector_of
from services.user_management.controllers.subject_service import upsert_subjects
from services.user_management.curriculum import is_in_curriculum, subjects_for
from services.user_management.models.parents import Parent
from services.user_management.models.students import Student
from services.user_management.models.teachers import HomeroomClass, Teacher, TeachingAssignment
from services.user_management.schemas.users import (
    LoginResponse,
    ParentCredentials,
    StudentAccountCreate,
    StudentAccountOut,
    TeacherAccountCreate,
    TeacherAccountOut,
)
from shared.auth import TokenUser, get_current_user, get_password_hash, issue_token, verify_password
from shared.config import PARENT_EMAIL_DOMAIN
from shared.constants import ALL_STAFF_ROLES, Role, STUDENT_ROLES
from shared.db import get_db, unit_of_work
from shared.errors import BadRequest, NotFound
from shared.periods import current_period
from shared.permissions import Caller
from shared.schemas import ClassSelector

logger = logging.getLogger(__name__)

_ACCOUNT_MODELS = (Student, Teacher, Parent)


async def _ensure_email_free(db: AsyncSession, email: str) -> None:
    for model in _ACCOUNT_MODELS:
        if await db.scalar(select(model.id).where(model.email == email)):
            raise BadRequest("Email already registered")


async def _find_homeroom(db: AsyncSession, selector: ClassSelector) -> Optional[HomeroomClass]:
    result = await db.execute(
        select(HomeroomClass).where(
            HomeroomClass.grade == selector.grade,
            HomeroomClass.major == selector.major,
            HomeroomClass.class_number == selector.class_number,
        )
    )
    return result.scalar_one_or_none()


def _parent_email(student: Student) -> str:
    local_part = "".join(student.name.lower().split())
    return f"{local_part}{str(student.id)[:4]}parentaccount@{PARENT_EMAIL_DOMAIN}"


# --- CREATE STUDENT ACCOUNT ---
async def create_student_account(db: AsyncSession, payload: StudentAccountCreate, today=None) -> StudentAccountOut:
    """
    Enroll a student into an existing homeroom class.

    The student row, the missing subject catalog entries, the student's
    buckets for the current period and the parent login are written together.
    The parent's generated password is only ever returned here.
    """
    if payload.role not in STUDENT_ROLES:
        raise BadRequest(f"Role {payload.role.value} is not a student role")

    selector = payload.class_selector
    subject_names = subjects_for(selector.grade, selector.major)
    if not subject_names:
        raise BadRequest("Subject configuration not found for this grade and major")

    await _ensure_email_free(db, payload.email)

    homeroom = await _find_homeroom(db, selector)
    if homeroom is None:
        raise NotFound("Homeroom class not found")

    period = current_period(today)
    parent_password = secrets.token_hex(8)

    async with unit_of_work(db):
        student = Student(
            name=payload.name.strip(),
            email=payload.email,
            hashed_password=get_password_hash(payload.password),
            grade=selector.grade,
            major=selector.major,
            class_number=selector.class_number,
            role=payload.role,
            homeroom_teacher_id=homeroom.teacher_id,
        )
        db.add(student)
        await db.flush()

        await upsert_subjects(db, subject_names)
        for subject_name in subject_names:
            await ensure_subject_mark(db, student.id, subject_name, period)

        parent = Parent(
            name=f"{student.name}'s Parents",
            email=_parent_email(student),
            hashed_password=get_password_hash(parent_password),
            student_id=student.id,
        )
        db.add(parent)

    logger.info("Created student account %s in %s", student.id, selector.label)
    return StudentAccountOut(
        message="Student account created successfully",
        student_id=student.id,
        parent_account=ParentCredentials(email=parent.email, password=parent_password),
    )


# --- CREATE TEACHER ACCOUNT ---
async def create_teacher_account(db: AsyncSession, payload: TeacherAccountCreate) -> TeacherAccountOut:
    if payload.role not in ALL_STAFF_ROLES:
        raise BadRequest(f"Role {payload.role.value} is not a teacher or staff role")

    seen = set()
    for assignment in payload.teaching_assignments:
        selector = ClassSelector(grade=assignment.grade, major=assignment.major, class_number=assignment.class_number)
        if not is_in_curriculum(assignment.subject_name, assignment.grade, assignment.major):
            raise BadRequest(
                f'Subject mismatch! The subject "{assignment.subject_name}" is not available for {selector.label}.'
            )
        key = (selector, assignment.subject_name)
        if key in seen:
            raise BadRequest(
                f'Duplicate assignment detected! "{assignment.subject_name}" appears more than once for {selector.label}.'
            )
        seen.add(key)

    await _ensure_email_free(db, payload.email)

    if payload.homeroom_class and await _find_homeroom(db, payload.homeroom_class):
        raise BadRequest(f"There is already a homeroom teacher in {payload.homeroom_class.label}")

    async with unit_of_work(db):
        teacher = Teacher(
            name=payload.name.strip(),
            email=payload.email,
            hashed_password=get_password_hash(payload.password),
            role=payload.role,
        )
        db.add(teacher)
        await db.flush()

        if payload.homeroom_class:
            db.add(
                HomeroomClass(
                    teacher_id=teacher.id,
                    grade=payload.homeroom_class.grade,
                    major=payload.homeroom_class.major,
                    class_number=payload.homeroom_class.class_number,
                )
            )

        subjects = await upsert_subjects(db, [a.subject_name for a in payload.teaching_assignments])
        for assignment in payload.teaching_assignments:
            db.add(
                TeachingAssignment(
                    teacher_id=teacher.id,
                    subject_id=subjects[assignment.subject_name].id,
                    grade=assignment.grade,
                    major=assignment.major,
                    class_number=assignment.class_number,
                )
            )

    logger.info("Created teacher account %s with %d teaching assignments", teacher.id, len(payload.teaching_assignments))
    return TeacherAccountOut(
        message="Teacher account created successfully",
        teacher_id=teacher.id,
        teaching_assignments=len(payload.teaching_assignments),
    )


# --- LOGIN ---
async def authenticate(db: AsyncSession, email: str, password: str) -> LoginResponse:
    for model in _ACCOUNT_MODELS:
        result = await db.execute(select(model).where(model.email == email))
        account = result.scalars().first()
        if account is not None:
            break
    else:
        account = None

    if not account or not verify_password(password, account.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    role = Role.PARENT if isinstance(account, Parent) else account.role
    access_token = issue_token(account.id, account.email, role)

    return LoginResponse(
        access_token=access_token,
        user_id=account.id,
        name=account.name,
        role=role,
    )


async def load_caller(db: AsyncSession, token_user: TokenUser) -> Caller:
    """Resolve token claims into the account they belong to."""
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Account no longer exists",
        headers={"WWW-Authenticate": "Bearer"},
    )
    role, user_id = token_user.role, token_user.user_id

    if role in STUDENT_ROLES:
        student = await db.get(Student, user_id)
        if not student or not student.is_active:
            raise unauthorized
        return Caller(user_id=student.id, role=student.role, class_selector=selector_of(student), student_id=student.id)

    if role == Role.PARENT:
        parent = await db.get(Parent, user_id)
        if not parent:
            raise unauthorized
        return Caller(user_id=parent.id, role=role, student_id=parent.student_id)

    teacher = await db.get(Teacher, user_id)
    if not teacher:
        raise unauthorized
    homeroom = await db.scalar(select(HomeroomClass).where(HomeroomClass.teacher_id == teacher.id))
    class_selector = None
    if homeroom is not None:
        class_selector = ClassSelector(grade=homeroom.grade, major=homeroom.major, class_number=homeroom.class_number)
    return Caller(user_id=teacher.id, role=teacher.role, class_selector=class_selector)


async def get_current_caller(
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
) -> Caller:
    return await load_caller(db, current_user)
