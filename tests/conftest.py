import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

# app.py construit un store au chargement : pas de PostgreSQL en test
os.environ.setdefault("BOOKING_BACKEND", "json")

from app import create_app  # noqa: E402
from repository import JsonBookingStore, SqlBookingStore  # noqa: E402


@pytest.fixture
def engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture(autouse=True)
def _test_env(tmp_path, monkeypatch):
    # Ensure tests don't write to repo root
    monkeypatch.setenv("BOOKINGS_FILE", str(tmp_path / "bookings.json"))
    yield


@pytest.fixture(params=["sql", "json"])
def store(request, tmp_path, engine):
    if request.param == "sql":
        s = SqlBookingStore(engine)
    else:
        s = JsonBookingStore(str(tmp_path / "data" / "bookings.json"))
    s.seed()
    return s


@pytest.fixture
def client(store):
    with TestClient(create_app(store)) as c:
        yield c
