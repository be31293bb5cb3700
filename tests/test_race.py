"""Concurrent gate calls against a shared database file."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from quota_gate.database.base import Base
from quota_gate.models import Profile
from quota_gate.services.quota_gate import Allowed, Denied, ProfileStore, QuotaGate

RACERS = 8


@pytest.fixture
def file_engine(tmp_path):
    """SQLite file so every racer gets its own connection."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


def _race(engine, user_id: str, fixed_now, racers: int = RACERS):
    SessionFactory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    barrier = threading.Barrier(racers)

    def call():
        db = SessionFactory()
        try:
            gate = QuotaGate(ProfileStore(db), now=lambda: fixed_now)
            barrier.wait()
            return gate.check_and_consume(user_id)
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=racers) as pool:
        futures = [pool.submit(call) for _ in range(racers)]
        return [f.result() for f in futures]


def _seed(engine, **fields):
    SessionFactory = sessionmaker(bind=engine)
    with SessionFactory() as db:
        db.add(Profile(**fields))
        db.commit()


def _count(engine, user_id: str) -> int:
    SessionFactory = sessionmaker(bind=engine)
    with SessionFactory() as db:
        return db.get(Profile, user_id).ai_usage_count


def test_only_one_racer_gets_the_last_slot(file_engine, fixed_now, today):
    _seed(file_engine, id="racer", is_premium=False, ai_usage_count=9, ai_usage_date=today)

    decisions = _race(file_engine, "racer", fixed_now)

    assert decisions.count(Allowed(remaining=0)) == 1
    assert decisions.count(Denied(limit=10)) == RACERS - 1
    assert _count(file_engine, "racer") == 10


def test_racers_never_overshoot_the_cap(file_engine, fixed_now, today):
    _seed(file_engine, id="racer", is_premium=False, ai_usage_count=6, ai_usage_date=today)

    decisions = _race(file_engine, "racer", fixed_now)

    granted = [d for d in decisions if isinstance(d, Allowed)]
    assert len(granted) <= 4
    assert sorted(d.remaining for d in granted) == sorted(set(d.remaining for d in granted))
    assert _count(file_engine, "racer") == 6 + len(granted)
