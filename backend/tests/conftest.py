"""Shared fixtures: a fresh in-memory database per test."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from venue_scheduler.db import Base, get_db, make_engine
from venue_scheduler.main import app
from venue_scheduler.schemas import EventIn


@pytest.fixture()
def engine():
    eng = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    def _get_test_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_test_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def event_in():
    """Factory for create payloads; defaults to Hall 1, 2024-06-01, 09:00-10:00."""
    def _make(**overrides) -> EventIn:
        defaults = dict(
            name="Standup",
            date="2024-06-01",
            start_time="09:00",
            end_time="10:00",
            location="Hall 1",
            description="Daily sync",
        )
        defaults.update(overrides)
        return EventIn(**defaults)

    return _make
