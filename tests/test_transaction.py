"""Tests for the transaction coordinator."""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from skillmatch.errors import StorageUnavailable, TransactionConflict
from skillmatch.models import User
from skillmatch.storage.transaction import TransactionCoordinator, UnitOfWork, translate_db_error


def _emails(session_factory):
    with session_factory() as session:
        return list(session.execute(select(User.email).order_by(User.email)).scalars())


@pytest.fixture
def coordinator(session_factory):
    return TransactionCoordinator(session_factory)


class TestTransactionCoordinator:
    def test_commits_on_success(self, coordinator, session_factory):
        with coordinator.transaction() as session:
            session.add(User(email="a@example.com", password_hash="x"))
        assert _emails(session_factory) == ["a@example.com"]

    def test_rolls_back_on_error(self, coordinator, session_factory):
        with pytest.raises(ValueError):
            with coordinator.transaction() as session:
                session.add(User(email="a@example.com", password_hash="x"))
                session.flush()
                raise ValueError("boom")
        assert _emails(session_factory) == []

    def test_run_returns_result(self, coordinator, session_factory):
        def work(session):
            user = User(email="b@example.com", password_hash="x")
            session.add(user)
            session.flush()
            return user.id

        assert isinstance(coordinator.run(work), int)
        assert _emails(session_factory) == ["b@example.com"]

    def test_nested_transaction_refused(self, coordinator):
        with coordinator.transaction():
            with pytest.raises(RuntimeError):
                with coordinator.transaction():
                    pass

    def test_guard_released_after_failure(self, coordinator, session_factory):
        with pytest.raises(ValueError):
            with coordinator.transaction():
                raise ValueError("boom")
        with coordinator.transaction() as session:
            session.add(User(email="c@example.com", password_hash="x"))
        assert _emails(session_factory) == ["c@example.com"]

    def test_integrity_error_becomes_conflict(self, coordinator, session_factory):
        coordinator.run(lambda s: s.add(User(email="dup@example.com", password_hash="x")))
        with pytest.raises(TransactionConflict):
            with coordinator.transaction() as session:
                session.add(User(email="dup@example.com", password_hash="y"))
        assert _emails(session_factory) == ["dup@example.com"]

    def test_operational_error_becomes_unavailable(self, coordinator):
        with pytest.raises(StorageUnavailable):
            with coordinator.transaction():
                raise OperationalError("SELECT 1", {}, Exception("database is locked"))


class TestUnitOfWork:
    def test_explicit_begin_commit(self, session_factory):
        uow = UnitOfWork(session_factory)
        session = uow.begin()
        session.add(User(email="d@example.com", password_hash="x"))
        uow.commit()
        assert uow.outcome == "committed"
        assert not uow.active
        assert _emails(session_factory) == ["d@example.com"]

    def test_explicit_rollback(self, session_factory):
        uow = UnitOfWork(session_factory)
        session = uow.begin()
        session.add(User(email="e@example.com", password_hash="x"))
        uow.rollback()
        uow.rollback()
        assert uow.outcome == "rolled_back"
        assert _emails(session_factory) == []

    def test_commit_without_begin(self, session_factory):
        with pytest.raises(RuntimeError):
            UnitOfWork(session_factory).commit()

    def test_begin_twice(self, session_factory):
        uow = UnitOfWork(session_factory)
        uow.begin()
        with pytest.raises(RuntimeError):
            uow.begin()
        uow.rollback()


class TestTranslateDbError:
    def test_non_database_errors_pass_through(self):
        err = KeyError("x")
        assert translate_db_error(err) is err


class TestReleaseOnUnexpectedErrors:
    def test_commit_failure_releases_guard(self, coordinator, session_factory, monkeypatch):
        uow = coordinator.transaction()
        session = uow.begin()

        def broken_commit():
            raise RuntimeError("driver bug")

        monkeypatch.setattr(session, "commit", broken_commit)
        with pytest.raises(RuntimeError, match="driver bug"):
            uow.commit()
        assert uow.outcome == "rolled_back"
        assert not uow.active

        with coordinator.transaction() as session:
            session.add(User(email="f@example.com", password_hash="x"))
        assert _emails(session_factory) == ["f@example.com"]

    def test_rollback_failure_releases_guard(self, coordinator, monkeypatch):
        uow = coordinator.transaction()
        session = uow.begin()

        def broken_rollback():
            raise RuntimeError("connection reset")

        monkeypatch.setattr(session, "rollback", broken_rollback)
        uow.rollback()
        assert uow.outcome == "rolled_back"

        with coordinator.transaction():
            pass

    def test_session_factory_failure_releases_guard(self, session_factory):
        calls = []

        def flaky_factory():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("pool exhausted")
            return session_factory()

        coordinator = TransactionCoordinator(flaky_factory)
        with pytest.raises(RuntimeError, match="pool exhausted"):
            with coordinator.transaction():
                pass
        with coordinator.transaction():
            pass
