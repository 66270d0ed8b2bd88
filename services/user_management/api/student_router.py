# services/user_management/api/student_router.py
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from services.user_management.controllers.account_service import get_current_caller
from services.user_management.controllers.subject_service import list_student_subjects
from services.user_management.schemas.subjects import StudentSubjectsOut
from shared.db import get_db
from shared.permissions import Caller, Capability, ResourceOwner, require

router = APIRouter(prefix="/students", tags=["Students"])


@router.get("/{student_id}/subjects", response_model=StudentSubjectsOut)
async def get_student_subjects(
    student_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    """Subjects the student is enrolled in for the current semester."""
    require(caller, Capability.VIEW_STUDENT_RECORDS, ResourceOwner(student_id=student_id))
    return await list_student_subjects(db, student_id)
