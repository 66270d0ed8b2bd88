from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from services.user_management.api.auth_router import router as auth_router
from services.user_management.api.account_router import router as account_router
from services.user_management.api.student_router import router as student_router
from services.mark_management.api.mark_router import router as mark_router
from services.attendance_management_system.api.attendance_router import router as attendance_router
from services.problem_points.api.problem_point_router import router as problem_point_router
from shared.log_config import configure_logging

configure_logging()

app = FastAPI(title="SchoolMate Journal Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
def health_check():
    return {"status": "SchoolMate Journal Backend is running"}


app.include_router(auth_router)
app.include_router(account_router)
app.include_router(student_router)
app.include_router(mark_router)
app.include_router(attendance_router)
app.include_router(problem_point_router)
