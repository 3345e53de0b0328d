"""Shared fixtures: a throwaway SQLite database and an in-memory artifact store."""

import os
import tempfile

import pytest

from skillmatch.models import Base, User
from skillmatch.models.base import build_engine, build_session_factory
from skillmatch.services.profile_service import ProfileService, create_profile
from skillmatch.storage.artifacts import InMemoryArtifactStore


@pytest.fixture
def session_factory():
    """Create a temporary database for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        engine = build_engine(f"sqlite:///{os.path.join(tmpdir, 'test.db')}")
        Base.metadata.create_all(engine)
        yield build_session_factory(engine)
        engine.dispose()


@pytest.fixture
def store():
    return InMemoryArtifactStore()


def make_user(session_factory, email="jane@example.com") -> int:
    with session_factory() as session:
        user = User(email=email, password_hash="x", first_name="Jane", last_name="Doe")
        session.add(user)
        session.flush()
        create_profile(session, user.id)
        session.commit()
        return user.id


@pytest.fixture
def create_user(session_factory):
    """Factory for extra accounts, each with an empty profile."""
    return lambda email: make_user(session_factory, email)


@pytest.fixture
def user_id(session_factory):
    return make_user(session_factory)


@pytest.fixture
def service(session_factory, store):
    return ProfileService(session_factory, store)
