"""
Test configuration

Fixtures: in-memory database, HTTP test client, data factory
"""
from typing import AsyncGenerator, Optional, Union
from dataclasses import dataclass, field

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from internbooth.core.change_feed import change_feed
from internbooth.core.database import get_db
from internbooth.crud import application_crud, internship_crud, student_crud, test_crud
from internbooth.main import create_app
from internbooth.models import (
    Application,
    ApplicationStatus,
    InternshipCreate,
    QuizSubmissionCreate,
    StudentCreate,
    TestAssignmentCreate,
)
from internbooth.services import assign_test, parse_questions, record_quiz_submission
from internbooth.services.round_ledger import append_pending_round, upsert_round


ADMIN = "admin-uid-1"

SAMPLE_QUESTIONS = [
    {
        "id": 1,
        "type": "mcq",
        "question": "Which keyword defines a coroutine?",
        "options": ["def", "async def", "lambda", "yield"],
        "correctAnswer": 1,
        "timeAllowed": 2,
    },
    {
        "id": 2,
        "type": "text",
        "question": "Name the Python package index.",
        "correctAnswer": "PyPI",
        "timeAllowed": 5,
    },
]


# ========== Data factory ==========

@dataclass
class DataFactory:
    """
    Test data factory

    Seeds reference documents straight through the CRUD layer and builds
    applications at a given pipeline stage.
    """
    db: AsyncSession
    _counter: int = field(default=0, repr=False)

    def _next_id(self) -> str:
        self._counter += 1
        return str(self._counter)

    async def create_student(self, **overrides):
        suffix = self._next_id()
        data = {
            "name": f"Student {suffix}",
            "email": f"student{suffix}@example.edu",
            "college": "Test College",
            "degree": "B.Tech",
            "graduation_year": 2026,
            "skills": ["Python"],
            **overrides
        }
        student = await student_crud.create(self.db, obj_in=StudentCreate(**data))
        await self.db.commit()
        return student

    async def create_internship(self, **overrides):
        suffix = self._next_id()
        data = {
            "title": f"Backend Intern {suffix}",
            "company_name": "Acme",
            "description": "Async Python services",
            **overrides
        }
        internship = await internship_crud.create(self.db, obj_in=InternshipCreate(**data))
        await self.db.commit()
        return internship

    async def create_test(self, questions=None, **overrides):
        suffix = self._next_id()
        data = {
            "title": f"Python basics {suffix}",
            "description": "Screening quiz",
            "questions": parse_questions(questions or SAMPLE_QUESTIONS),
            "duration": 10,
            "created_by": ADMIN,
            **overrides
        }
        test = await test_crud.create(self.db, obj_in=data)
        await self.db.commit()
        return test

    async def create_application(
        self,
        status: Union[str, ApplicationStatus] = ApplicationStatus.FORM_SUBMITTED,
        internship_id: Optional[str] = None,
        student_id: Optional[str] = None,
        **overrides
    ) -> Application:
        """Application in the given status; form_approved also passes round 1"""
        if internship_id is None:
            internship_id = (await self.create_internship()).id
        if student_id is None:
            student_id = (await self.create_student()).id

        status = ApplicationStatus(status)
        rounds = append_pending_round([], 1)
        if status is ApplicationStatus.FORM_APPROVED:
            rounds = upsert_round(rounds, 1, "passed", evaluated_by=ADMIN)

        data = {
            "internship_id": internship_id,
            "student_id": student_id,
            "status": status.value,
            "current_round": 1,
            "rounds": rounds,
            **overrides
        }
        application = await application_crud.create(self.db, obj_in=data)
        await self.db.commit()
        return application

    async def assigned_application(self):
        """(application, assignment, test) right after a test was assigned"""
        application = await self.create_application(ApplicationStatus.FORM_APPROVED)
        test = await self.create_test()
        assignment = await assign_test(
            self.db,
            TestAssignmentCreate(
                internship_id=application.internship_id,
                application_id=application.id,
                student_id=application.student_id,
                test_id=test.id,
            ),
            ADMIN,
        )
        return application, assignment, test

    async def completed_quiz(self, answers=None):
        """(application id, assignment id, submission) after the student finished the quiz"""
        application, assignment, _ = await self.assigned_application()
        submission = await record_quiz_submission(
            self.db,
            QuizSubmissionCreate(
                internship_id=application.internship_id,
                application_id=application.id,
                question_data=answers or [
                    {"id": 1, "userAnswer": "async def"},
                    {"id": 2, "user_answer": "pypi"},
                ],
            ),
        )
        return application.id, assignment.id, submission


async def fetch(db: AsyncSession, model, id: str):
    """Current stored state, bypassing anything cached on the session"""
    return await db.get(model, id, populate_existing=True)


# ========== Database ==========

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Isolated session per test

    Each test gets its own in-memory database on a single shared connection,
    created on the test's own event loop and disposed afterwards.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with get_db pointed at the test session"""
    app = create_app()

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-Actor-Id": ADMIN},
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def factory(db_session: AsyncSession) -> DataFactory:
    return DataFactory(db=db_session)


@pytest.fixture(autouse=True)
def clear_subscribers():
    """Live subscribers never leak between tests"""
    yield
    change_feed.clear()
