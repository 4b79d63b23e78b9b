"""
Shared fixtures: a fresh in-memory SQLite database per test.
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy.orm import Session

from db.database import init_db, make_engine

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    engine = make_engine("sqlite:///:memory:")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine, expire_on_commit=False) as s:
        yield s


@pytest.fixture
def now():
    return NOW
