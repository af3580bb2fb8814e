import json
import os

import pytest
from sqlmodel import Session, select

from errors import ConflictError, StorageError
from models import StageBooking
from repository import JsonBookingStore, SqlBookingStore, build_store
from settings import Settings
from slots import SLOT_IDS


def test_fresh_store_has_all_slots_free(store):
    bookings = store.read_all()
    assert list(bookings) == list(SLOT_IDS)
    assert all(name is None for name in bookings.values())


def test_claim_then_read(store):
    updated = store.claim("3", "Alice")
    assert updated["3"] == "Alice"
    assert store.read_all()["3"] == "Alice"
    assert sum(name is not None for name in store.read_all().values()) == 1


def test_claim_twice_is_idempotent(store):
    store.claim("3", "Alice")
    store.claim("3", "Alice")
    bookings = store.read_all()
    assert bookings["3"] == "Alice"
    assert len(bookings) == 10


def test_claim_overwrites_by_default(store):
    store.claim("3", "Alice")
    store.claim("3", "Bob")
    assert store.read_all()["3"] == "Bob"


def test_seed_keeps_existing_claims(store):
    store.claim("7", "Dana")
    store.seed()
    assert store.read_all()["7"] == "Dana"


@pytest.mark.parametrize("backend", ["sql", "json"])
def test_reject_policy(backend, tmp_path, engine):
    if backend == "sql":
        store = SqlBookingStore(engine, policy="reject")
    else:
        store = JsonBookingStore(str(tmp_path / "bookings.json"), policy="reject")
    store.seed()

    store.claim("3", "Alice")
    store.claim("3", "Alice")  # same holder: no-op
    with pytest.raises(ConflictError) as exc:
        store.claim("3", "Bob")
    assert exc.value.status_code == 409
    assert store.read_all()["3"] == "Alice"


def test_json_missing_file_reads_as_free(tmp_path):
    store = JsonBookingStore(str(tmp_path / "nope.json"))
    assert store.read_all() == {slot_id: None for slot_id in SLOT_IDS}


def test_json_partial_record_is_completed(tmp_path):
    path = tmp_path / "bookings.json"
    path.write_text(json.dumps({"2": "Eve", "42": "Mallory", "5": ""}), encoding="utf-8")
    bookings = JsonBookingStore(str(path)).read_all()
    assert list(bookings) == list(SLOT_IDS)
    assert bookings["2"] == "Eve"
    assert bookings["5"] is None
    assert "42" not in bookings


def test_json_seed_writes_all_keys(tmp_path):
    path = tmp_path / "sub" / "bookings.json"
    JsonBookingStore(str(path)).seed()
    assert json.loads(path.read_text(encoding="utf-8")) == {slot_id: None for slot_id in SLOT_IDS}


def test_json_claim_drops_unknown_keys(tmp_path):
    path = tmp_path / "bookings.json"
    path.write_text(json.dumps({"11": "Ghost"}), encoding="utf-8")
    JsonBookingStore(str(path)).claim("1", "Frank")
    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert set(on_disk) == set(SLOT_IDS)
    assert on_disk["1"] == "Frank"


@pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]"])
def test_json_corrupt_file_raises_storage_error(tmp_path, content):
    path = tmp_path / "bookings.json"
    path.write_text(content, encoding="utf-8")
    store = JsonBookingStore(str(path))
    with pytest.raises(StorageError) as exc:
        store.read_all()
    assert exc.value.status_code == 500
    assert exc.value.message == "Failed to fetch bookings"
    with pytest.raises(StorageError) as exc:
        store.claim("1", "Alice")
    assert exc.value.message == "Failed to book room"
    assert path.read_text(encoding="utf-8") == content


def test_sql_partial_rows_are_completed(engine):
    store = SqlBookingStore(engine)
    store.seed()
    with Session(engine) as s:
        s.delete(s.get(StageBooking, "4"))
        s.commit()
    bookings = store.read_all()
    assert bookings["4"] is None
    assert len(bookings) == 10

    store.claim("4", "Grace")
    assert store.read_all()["4"] == "Grace"


def test_sql_claim_on_empty_table_inserts_row(engine):
    store = SqlBookingStore(engine)
    store.seed()
    with Session(store.engine) as s:
        for row in s.exec(select(StageBooking)).all():
            s.delete(row)
        s.commit()
    store.claim("9", "Heidi")
    assert store.read_all()["9"] == "Heidi"


def test_sql_failure_raises_storage_error(engine):
    # pas de seed : la table n'existe pas
    store = SqlBookingStore(engine)
    with pytest.raises(StorageError):
        store.read_all()
    with pytest.raises(StorageError):
        store.claim("1", "Alice")


def test_build_store_picks_backend(tmp_path):
    json_store = build_store(Settings(backend="json", bookings_file=str(tmp_path / "b.json")))
    assert isinstance(json_store, JsonBookingStore)

    sql_store = build_store(Settings(backend="sql", database_url="sqlite://", conflict_policy="reject"))
    assert isinstance(sql_store, SqlBookingStore)
    assert sql_store.policy == "reject"


def test_json_failed_replace_leaves_no_temp_file(tmp_path, monkeypatch):
    store = JsonBookingStore(str(tmp_path / "bookings.json"))
    store.seed()

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", broken_replace)
    with pytest.raises(StorageError) as exc:
        store.claim("1", "Alice")
    assert exc.value.message == "Failed to book room"
    assert list(tmp_path.glob("*.tmp")) == []

    monkeypatch.undo()
    assert store.read_all()["1"] is None


def test_sql_reject_is_decided_by_the_upsert(engine):
    store = SqlBookingStore(engine, policy="reject")
    store.seed()
    store.claim("3", "Alice")

    # la condition vit dans l'INSERT ... ON CONFLICT : pas de lecture préalable
    with Session(engine) as s:
        assert store._upsert(s, "3", "Bob") is False
        assert store._upsert(s, "3", "Alice") is True
        assert store._upsert(s, "4", "Bob") is True
        s.commit()
    bookings = store.read_all()
    assert bookings["3"] == "Alice"
    assert bookings["4"] == "Bob"
