import random
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sprintplanr.models.entities import Resource, ScheduleEntry, Task
from sprintplanr.storage.database import Base


NOW = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    """Fixed reference time so schedules are reproducible."""
    return NOW


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def scenario_tasks():
    """Three tasks with mixed weights and deadlines."""
    return [
        Task(id="A", story_points=5, deadline=NOW + timedelta(days=10), title="Build API"),
        Task(id="B", story_points=2, deadline=NOW + timedelta(days=2), title="Fix login"),
        Task(id="C", story_points=8, deadline=NOW + timedelta(days=20), title="Reporting"),
    ]


@pytest.fixture
def scenario_resources():
    """Two interchangeable team members."""
    return [
        Resource(id="R1", name="Alice", email="alice@example.com", role="developer"),
        Resource(id="R2", name="Bob", email="bob@example.com", role="developer"),
    ]


@pytest.fixture
def five_resources():
    return [Resource(id=f"r{i}", name=f"Member {i}") for i in range(5)]


@pytest.fixture
def past_deadline_tasks():
    """Every task already overdue."""
    deadline = NOW - timedelta(days=3)
    return [Task(id=f"t{i}", story_points=i, deadline=deadline) for i in range(8)]


@pytest.fixture
def make_entry():
    """Factory for schedule entries relative to NOW."""
    def _make(task_id, resource_id, start_day=0, end_day=1):
        return ScheduleEntry(
            task_id=task_id,
            resource_id=resource_id,
            start=NOW + timedelta(days=start_day),
            end=NOW + timedelta(days=end_day),
        )
    return _make


@pytest.fixture
def db_session():
    """In-memory SQLite session shared across the test client's threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
