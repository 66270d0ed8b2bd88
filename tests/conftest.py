import os
import tempfile

# The application engine is built at import time
os.environ.setdefault(
    "DATABASE_URL", f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), 'schoolmate_app.db')}"
)
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from datetime import date  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import select  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

import services.user_management.models  # noqa: E402,F401
import services.mark_management.models  # noqa: E402,F401
import services.attendance_management_system.models  # noqa: E402,F401
import services.problem_points.models  # noqa: E402,F401
from services.mark_management.models.marks import SubjectMark  # noqa: E402
from services.user_management.curriculum import subjects_for  # noqa: E402
from services.user_management.models import HomeroomClass, Parent, Student, Subject, Teacher, TeachingAssignment  # noqa: E402
from shared.constants import ClassNumber, Grade, Major, Role  # noqa: E402
from shared.db import Base  # noqa: E402
from shared.periods import current_period  # noqa: E402
from shared.schemas import ClassSelector  # noqa: E402

# Second semester of 2024
TODAY = date(2024, 3, 11)
PERIOD = current_period(TODAY)

CLASS_A = ClassSelector(grade=Grade.ELEVENTH, major=Major.SOFTWARE_ENGINEERING, class_number=ClassNumber.ONE)
CLASS_B = ClassSelector(grade=Grade.ELEVENTH, major=Major.SOFTWARE_ENGINEERING, class_number=ClassNumber.TWO)

# Seeded accounts never log in, so the hash does not need to be real
UNUSED_HASH = "not-a-real-hash"


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        connect_args={"timeout": 15},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


class Seeder:
    """Builds classes, teachers and students straight into the store."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def teacher(self, name="Teacher", role=Role.TEACHER, homeroom=None, hashed_password=UNUSED_HASH):
        async with self.session_factory() as session:
            teacher = Teacher(
                name=name,
                email=f"{name.lower().replace(' ', '.')}@school.id",
                hashed_password=hashed_password,
                role=role,
            )
            session.add(teacher)
            await session.flush()
            if homeroom is not None:
                session.add(
                    HomeroomClass(
                        teacher_id=teacher.id,
                        grade=homeroom.grade,
                        major=homeroom.major,
                        class_number=homeroom.class_number,
                    )
                )
            await session.commit()
            return teacher

    async def subjects(self, selector):
        async with self.session_factory() as session:
            result = await session.execute(select(Subject))
            subjects = {subject.subject_name: subject for subject in result.scalars()}
            for name in subjects_for(selector.grade, selector.major):
                if name not in subjects:
                    subject = Subject(subject_name=name)
                    session.add(subject)
                    subjects[name] = subject
            await session.commit()
            return subjects

    async def students(self, selector, names, homeroom_teacher=None, with_buckets=True, period=PERIOD):
        async with self.session_factory() as session:
            students = []
            for name in names:
                student = Student(
                    name=name,
                    email=f"{name.lower().replace(' ', '.')}.{selector.class_number.value}@school.id",
                    hashed_password=UNUSED_HASH,
                    grade=selector.grade,
                    major=selector.major,
                    class_number=selector.class_number,
                    homeroom_teacher_id=homeroom_teacher.id if homeroom_teacher else None,
                )
                session.add(student)
                students.append(student)
            await session.flush()

            if with_buckets:
                for student in students:
                    for subject_name in subjects_for(selector.grade, selector.major):
                        session.add(
                            SubjectMark(
                                student_id=student.id,
                                subject_name=subject_name,
                                academic_year=period.academic_year,
                                semester=period.semester,
                                next_assessment_number=0,
                            )
                        )
            await session.commit()
            return students

    async def teaching_assignment(self, teacher, subject, selector):
        async with self.session_factory() as session:
            assignment = TeachingAssignment(
                teacher_id=teacher.id,
                subject_id=subject.id,
                grade=selector.grade,
                major=selector.major,
                class_number=selector.class_number,
            )
            session.add(assignment)
            await session.commit()
            return assignment

    async def parent(self, student, name="Parent"):
        async with self.session_factory() as session:
            parent = Parent(
                name=name,
                email=f"{name.lower()}.{str(student.id)[:8]}@parents.school.id",
                hashed_password=UNUSED_HASH,
                student_id=student.id,
            )
            session.add(parent)
            await session.commit()
            return parent

    async def classroom(self, selector=CLASS_A, names=("Alice", "Budi", "Citra"), subject_name="web", period=PERIOD):
        """Homeroom teacher, catalog, students with buckets and a teaching assignment."""
        homeroom_teacher = await self.teacher(name=f"Homeroom {selector.class_number.value}", homeroom=selector)
        subjects = await self.subjects(selector)
        students = await self.students(selector, names, homeroom_teacher=homeroom_teacher, period=period)
        await self.teaching_assignment(homeroom_teacher, subjects[subject_name], selector)
        return homeroom_teacher, subjects, students


@pytest.fixture
def seed(session_factory):
    return Seeder(session_factory)


@pytest.fixture
async def client(session_factory):
    from httpx import ASGITransport, AsyncClient

    from main import app
    from shared.db import get_db

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


def auth_headers(account, role):
    from shared.auth import issue_token

    token = issue_token(account.id, account.email, role)
    return {"Authorization": f"Bearer {token}"}
