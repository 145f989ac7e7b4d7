"""
Pytest fixtures for LMS grading and progress tests.

Uses a temp-file SQLite database so the app's sessions and the fixtures'
sessions see the same data.
"""

import os
import tempfile
import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
TEST_DB_PATH = _tmp.name
TEST_DATABASE_URL = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
# Force config reload so the app uses the test DB
from lms.config import get_settings  # noqa: E402

get_settings.cache_clear()

from lms.database import get_db  # noqa: E402
from lms.kernel.models import (  # noqa: E402
    Assessment,
    AssessmentQuestion,
    Base,
    Course,
    CourseContent,
    Question,
    User,
    UserRole,
)

TEST_ENGINE = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=NullPool,
)
TEST_SESSION_MAKER = async_sessionmaker(
    TEST_ENGINE,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TEST_SESSION_MAKER() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def auth_headers(user: User) -> dict:
    """Identity header as forwarded by the gateway."""
    return {"X-User-Id": str(user.id)}


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Fresh schema for every test."""
    async with TEST_ENGINE.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield TEST_ENGINE


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    async with TEST_SESSION_MAKER() as session:
        yield session
        await session.rollback()


async def _make_user(session: AsyncSession, email: str, role: UserRole) -> User:
    user = User(
        id=uuid.uuid4(),
        email=email,
        full_name=email.split("@")[0].title(),
        role=role.value,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest_asyncio.fixture
async def student(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "student@example.com", UserRole.STUDENT)


@pytest_asyncio.fixture
async def other_student(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "other@example.com", UserRole.STUDENT)


@pytest_asyncio.fixture
async def instructor(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "instructor@example.com", UserRole.INSTRUCTOR)


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "admin@example.com", UserRole.ADMIN)


@pytest_asyncio.fixture
async def course(db_session: AsyncSession, instructor: User) -> Course:
    """Published course with two content items."""
    course = Course(
        id=uuid.uuid4(),
        title="Intro to Testing",
        instructor_id=instructor.id,
        is_published=True,
        max_students=30,
    )
    db_session.add(course)
    for position in range(2):
        db_session.add(
            CourseContent(
                course_id=course.id,
                title=f"Lesson {position + 1}",
                duration=15,
                position=position,
            )
        )
    await db_session.commit()
    await db_session.refresh(course)
    return course


@pytest_asyncio.fixture
async def content_ids(db_session: AsyncSession, course: Course) -> list:
    result = await db_session.execute(
        select(CourseContent.id)
        .where(CourseContent.course_id == course.id)
        .order_by(CourseContent.position)
    )
    return list(result.scalars().all())


@pytest_asyncio.fixture
async def assessment(db_session: AsyncSession, course: Course) -> Assessment:
    """Published quiz: two true/false questions worth 10 points each, passing 70%."""
    assessment = Assessment(
        id=uuid.uuid4(),
        course_id=course.id,
        title="Quiz 1",
        passing_score=70,
        max_attempts=3,
        is_published=True,
        start_date=datetime.now(timezone.utc) - timedelta(days=1),
    )
    db_session.add(assessment)
    for position, correct in enumerate([True, False]):
        question = Question(
            id=uuid.uuid4(),
            text=f"Statement {position + 1}",
            question_type="true-false",
            points=10,
            answer_key={"correct_answer": correct},
        )
        db_session.add(question)
        db_session.add(
            AssessmentQuestion(
                assessment_id=assessment.id,
                question_id=question.id,
                position=position,
            )
        )
    await db_session.commit()
    await db_session.refresh(assessment)
    return assessment


@pytest_asyncio.fixture
async def question_ids(db_session: AsyncSession, assessment: Assessment) -> list:
    result = await db_session.execute(
        select(AssessmentQuestion.question_id)
        .where(AssessmentQuestion.assessment_id == assessment.id)
        .order_by(AssessmentQuestion.position)
    )
    return list(result.scalars().all())


@pytest_asyncio.fixture
async def client(db_engine) -> AsyncGenerator[AsyncClient, None]:
    """Async client wired to the test database."""
    from lms.main import app

    app.dependency_overrides[get_db] = override_get_db
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_db, None)


def pytest_sessionfinish(session, exitstatus):
    try:
        os.unlink(TEST_DB_PATH)
    except OSError:
        pass


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
