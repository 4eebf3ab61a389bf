"""Races on single-use artifacts against a file-backed database."""

import threading
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from core.errors import ResetTokenInvalid
from database import Base
from identity.password_reset import consume_reset_token, create_reset_token
from identity.verification import store_verification_code, verify_code
from models.user import User

RACERS = 4


@pytest.fixture
def file_sessions(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    # pysqlite defers BEGIN until the first write; take the write lock up
    # front so competing transactions queue on the busy timeout.
    @event.listens_for(engine, "connect")
    def _connect(dbapi_connection, _record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(connection):
        connection.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    engine.dispose()


def _race(session_factory, fn):
    barrier = threading.Barrier(RACERS)
    results = []
    lock = threading.Lock()

    def _worker():
        session = session_factory()
        try:
            barrier.wait()
            try:
                outcome = fn(session)
            except ResetTokenInvalid:
                outcome = "rejected"
            with lock:
                results.append(outcome)
        finally:
            session.close()

    threads = [threading.Thread(target=_worker) for _ in range(RACERS)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return results


def _seed_user(session_factory) -> int:
    session = session_factory()
    try:
        user = User(email="a@x.com", role="user", is_email_verified=False)
        session.add(user)
        session.commit()
        return user.id
    finally:
        session.close()


def test_reset_token_is_consumed_exactly_once(file_sessions):
    user_id = _seed_user(file_sessions)
    setup = file_sessions()
    try:
        create_reset_token(
            setup, "a@x.com", "tok123", datetime.now(timezone.utc) + timedelta(minutes=30)
        )
    finally:
        setup.close()

    results = _race(file_sessions, lambda db: consume_reset_token(db, "tok123"))

    assert len(results) == RACERS
    assert results.count(user_id) == 1
    assert results.count("rejected") == RACERS - 1


def test_verification_code_is_accepted_exactly_once(file_sessions):
    user_id = _seed_user(file_sessions)
    setup = file_sessions()
    try:
        store_verification_code(
            setup, user_id, "482913", datetime.now(timezone.utc) + timedelta(minutes=10)
        )
    finally:
        setup.close()

    results = _race(file_sessions, lambda db: verify_code(db, "a@x.com", "482913"))

    assert len(results) == RACERS
    assert results.count(True) == 1
    assert results.count(False) == RACERS - 1
