"""
Pytest configuration and shared fixtures for backend tests.
"""

import sys
from pathlib import Path

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from datetime import UTC, datetime, timedelta
from typing import AsyncGenerator
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

# Import after path is set
from adapters.store import SqlDocumentStore
from core.interfaces.store import DocumentStore
from infrastructure.database import make_session_maker
from infrastructure.database.models import (
    Activity,
    Base,
    Project,
    ProjectUser,
    Task,
    User,
)

BASE_TIME = datetime(2025, 3, 1, 9, 0, tzinfo=UTC)


@pytest.fixture
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a file-backed SQLite engine so concurrent sessions get separate connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    return make_session_maker(db_engine)


@pytest.fixture
def store(session_maker) -> SqlDocumentStore:
    """Document store over the test database."""
    return SqlDocumentStore(session_maker, max_in_values=10)


class Seeder:
    """Writes rows straight through the ORM, bypassing the store under test."""

    def __init__(self, session_maker):
        self._session_maker = session_maker

    async def _add(self, obj):
        async with self._session_maker() as session:
            async with session.begin():
                session.add(obj)
        return obj

    async def user(self, first_name: str = "Alex", email: str | None = None, user_id: str | None = None) -> User:
        return await self._add(
            User(
                id=user_id or str(uuid4()),
                email=email or f"{first_name.lower()}-{uuid4().hex[:6]}@example.com",
                first_name=first_name,
                last_name="Tester",
            )
        )

    async def project(
        self,
        created_by: str,
        name: str = "Project",
        shared_with: list[str] | None = None,
        is_active: bool = True,
        due_date: datetime | None = None,
    ) -> Project:
        project = Project(
            id=str(uuid4()),
            name=name,
            description="",
            created_by=created_by,
            is_active=is_active,
            due_date=due_date,
            created_at=BASE_TIME,
        )
        project.set_shared_with(shared_with or [])
        return await self._add(project)

    async def project_user(self, project_id: str, user_id: str, token: str | None = None) -> ProjectUser:
        return await self._add(
            ProjectUser(project_id=project_id, user_id=user_id, expo_push_token=token)
        )

    async def task(
        self,
        project_id: str,
        owner: str,
        name: str = "Task",
        status: str = "pending",
        due_date: datetime | None = None,
    ) -> Task:
        return await self._add(
            Task(
                id=str(uuid4()),
                name=name,
                description="",
                project_id=project_id,
                owner=owner,
                status=status,
                priority="medium",
                due_date=due_date,
                created_at=BASE_TIME,
                completed_at=BASE_TIME if status == "completed" else None,
            )
        )

    async def activity(
        self,
        project_id: str,
        user_id: str,
        minutes: int = 0,
        task_id: str | None = None,
        content: str = "",
    ) -> Activity:
        return await self._add(
            Activity(
                id=str(uuid4()),
                project_id=project_id,
                task_id=task_id,
                user_id=user_id,
                type="message",
                content=content,
                timestamp=BASE_TIME + timedelta(minutes=minutes),
            )
        )


@pytest.fixture
def seed(session_maker) -> Seeder:
    return Seeder(session_maker)


@pytest.fixture
def mock_store() -> AsyncMock:
    """Mock document store for unit tests."""
    store = AsyncMock(spec=DocumentStore)
    store.max_in_values = 10
    store.query.return_value = []
    store.get.return_value = None
    return store
