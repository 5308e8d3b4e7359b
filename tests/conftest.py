import os
import tempfile

# Point the app at a throwaway SQLite file before anything imports db.py
_DB_DIR = tempfile.mkdtemp(prefix="quickfire-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["SCORE_STORE"] = "sql"

import pytest  # noqa: E402

from db import SessionLocal, create_schema  # noqa: E402
from models import Player, Score  # noqa: E402

create_schema()


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def clean_tables():
    with SessionLocal() as db:
        db.query(Score).delete()
        db.query(Player).delete()
        db.commit()
    yield


@pytest.fixture
def clock():
    return FakeClock()
