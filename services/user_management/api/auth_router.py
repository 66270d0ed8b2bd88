# services/user_management/api/auth_router.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from services.user_management.controllers.account_service import authenticate
from services.user_management.schemas.users import LoginRequest, LoginResponse
from shared.db import get_db

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    return await authenticate(db, payload.email, payload.password)
