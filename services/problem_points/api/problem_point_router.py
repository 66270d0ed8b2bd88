# services/problem_points/api/problem_point_router.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from services.problem_points.controllers.problem_point_service import list_problem_points, record_problem_points
from services.problem_points.schemas.problem_points import ProblemPointCreate, ProblemPointCreateOut, ProblemPointPage
from services.user_management.controllers.account_service import get_current_caller
from shared.db import get_db
from shared.permissions import Caller, Capability, ResourceOwner, require

router = APIRouter(prefix="/problem-points", tags=["Problem Points"])


@router.post("", response_model=ProblemPointCreateOut, status_code=status.HTTP_201_CREATED)
async def create_problem_points(
    payload: ProblemPointCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    require(caller, Capability.RECORD_PROBLEM_POINTS)
    return await record_problem_points(
        db,
        caller.user_id,
        payload.student_ids,
        payload.category,
        payload.point,
        payload.description,
        payload.date,
    )


@router.get("/students/{student_id}", response_model=ProblemPointPage)
async def get_student_problem_points(
    student_id: uuid.UUID,
    page: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    require(caller, Capability.VIEW_STUDENT_RECORDS, ResourceOwner(student_id=student_id))
    return await list_problem_points(db, student_id, page=page)
