# services/user_management/api/account_router.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from services.user_management.controllers.account_service import (
    create_student_account,
    create_teacher_account,
    get_current_caller,
)
from services.user_management.schemas.users import (
    StudentAccountCreate,
    StudentAccountOut,
    TeacherAccountCreate,
    TeacherAccountOut,
)
from shared.db import get_db
from shared.permissions import Caller, Capability, require

router = APIRouter(prefix="/accounts", tags=["Accounts"])


# --- CREATE STUDENT ACCOUNT (staff only) ---
@router.post("/students", response_model=StudentAccountOut, status_code=status.HTTP_201_CREATED)
async def register_student(
    payload: StudentAccountCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    require(caller, Capability.MANAGE_ACCOUNTS)
    return await create_student_account(db, payload)


# --- CREATE TEACHER ACCOUNT (staff only) ---
@router.post("/teachers", response_model=TeacherAccountOut, status_code=status.HTTP_201_CREATED)
async def register_teacher(
    payload: TeacherAccountCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    require(caller, Capability.MANAGE_ACCOUNTS)
    return await create_teacher_account(db, payload)
