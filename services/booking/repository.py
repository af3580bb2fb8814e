# ============================================================
# repository.py — Accès aux réservations de stages
# ------------------------------------------------------------
# Design pattern "Repository" : isole la persistance de la
# couche API. Deux backends, même interface :
#   - SqlBookingStore  : table "bookings" (PostgreSQL / SQLite)
#   - JsonBookingStore : un seul document JSON {"1": null, ...}
#
# Interface commune :
#   seed()               → crée les 10 stages libres si absents
#   read_all()           → {"1": nom|None, ..., "10": nom|None}
#   claim(slot_id, name) → écrit le nom puis renvoie la map
#
# Politique de conflit : "overwrite" écrase toujours (la
# confirmation "déjà réservé, sûr ?" est côté client) ;
# "reject" lève ConflictError si un autre nom tient le stage.
# ============================================================
import json
import os
import tempfile
import threading
from typing import Dict, Optional, Union

from sqlalchemy import Engine
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, col, create_engine, or_, select

from errors import ConflictError, StorageError
from models import StageBooking
from settings import Settings
from slots import SLOT_IDS

READ_FAILED = "Failed to fetch bookings"
WRITE_FAILED = "Failed to book room"

Bookings = Dict[str, Optional[str]]

# INSERT ... ON CONFLICT selon le dialecte
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def complete_bookings(raw: dict) -> Bookings:
    # les 10 stages dans l'ordre ; toute autre clé de raw est ignorée
    result: Bookings = {}
    for slot_id in SLOT_IDS:
        value = raw.get(slot_id)
        result[slot_id] = value if isinstance(value, str) and value else None
    return result


def _check_conflict(bookings: Bookings, slot_id: str, name: str, policy: str) -> None:
    holder = bookings.get(slot_id)
    if policy == "reject" and holder is not None and holder != name:
        raise ConflictError(f"Room {slot_id} is already booked by {holder}")


# ------------------------------------------------------------
# SqlBookingStore
# ------------------------------------------------------------
# Une Session par opération, auto-close. Le claim est un upsert
# ON CONFLICT (room_id) DO UPDATE : atomique au niveau de la ligne,
# la dernière écriture gagne. En "reject", la condition de conflit
# est dans le WHERE de l'upsert (rowcount 0 → ConflictError).
# ------------------------------------------------------------
class SqlBookingStore:
    def __init__(self, engine: Engine, policy: str = "overwrite"):
        self.engine = engine
        self.policy = policy

    def seed(self) -> None:
        try:
            SQLModel.metadata.create_all(self.engine)
            with Session(self.engine) as s:
                existing = set(s.exec(select(StageBooking.room_id)).all())
                missing = [slot_id for slot_id in SLOT_IDS if slot_id not in existing]
                for slot_id in missing:
                    s.add(StageBooking(room_id=slot_id))
                s.commit()
        except SQLAlchemyError as e:
            raise StorageError(READ_FAILED, f"seed: {e}") from e
        if missing:
            print(f"[store] seeded {len(missing)} free stage(s) in table 'bookings'", flush=True)

    def read_all(self) -> Bookings:
        try:
            with Session(self.engine) as s:
                rows = s.exec(select(StageBooking)).all()
        except SQLAlchemyError as e:
            raise StorageError(READ_FAILED, f"select: {e}") from e
        return complete_bookings({r.room_id: r.booked_by for r in rows})

    def claim(self, slot_id: str, name: str) -> Bookings:
        try:
            with Session(self.engine) as s:
                if not self._upsert(s, slot_id, name):
                    row = s.get(StageBooking, slot_id)
                    holder = row.booked_by if row else None
                    raise ConflictError(f"Room {slot_id} is already booked by {holder}")
                s.commit()
        except SQLAlchemyError as e:
            raise StorageError(WRITE_FAILED, f"upsert room {slot_id}: {e}") from e
        return self.read_all()

    # False si la politique "reject" a refusé l'écriture
    def _upsert(self, s: Session, slot_id: str, name: str) -> bool:
        insert = _UPSERT_INSERTS.get(self.engine.dialect.name)
        if insert is None:
            # autre dialecte : get puis insert/update via l'ORM (non atomique)
            row = s.get(StageBooking, slot_id)
            if self.policy == "reject" and row is not None and row.booked_by not in (None, name):
                return False
            s.merge(StageBooking(room_id=slot_id, booked_by=name))
            return True
        stmt = insert(StageBooking).values(room_id=slot_id, booked_by=name)
        # reject : la condition est dans l'upsert, vérifiée sur la ligne existante
        where = None
        if self.policy == "reject":
            where = or_(col(StageBooking.booked_by).is_(None), col(StageBooking.booked_by) == name)
        stmt = stmt.on_conflict_do_update(
            index_elements=[StageBooking.room_id],
            set_={"booked_by": stmt.excluded.booked_by},
            where=where,
        )
        return s.execute(stmt).rowcount > 0


# ------------------------------------------------------------
# JsonBookingStore
# ------------------------------------------------------------
# Lecture-modification-écriture sous verrou (un process) ;
# écriture atomique : fichier temporaire puis os.replace.
# Un fichier absent se lit comme "tout libre".
# ------------------------------------------------------------
class JsonBookingStore:
    def __init__(self, path: str, policy: str = "overwrite"):
        self.path = path
        self.policy = policy
        self._lock = threading.Lock()

    def seed(self) -> None:
        with self._lock:
            if os.path.exists(self.path):
                return
            self._write(complete_bookings({}), READ_FAILED)
        print(f"[store] seeded {self.path} with {len(SLOT_IDS)} free stages", flush=True)

    def read_all(self) -> Bookings:
        return complete_bookings(self._read(READ_FAILED))

    def claim(self, slot_id: str, name: str) -> Bookings:
        with self._lock:
            bookings = complete_bookings(self._read(WRITE_FAILED))
            _check_conflict(bookings, slot_id, name, self.policy)
            bookings[slot_id] = name
            self._write(bookings, WRITE_FAILED)
        return bookings

    def _read(self, public_message: str) -> dict:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(public_message, f"read {self.path}: {e}") from e
        if not isinstance(raw, dict):
            raise StorageError(public_message, f"read {self.path}: expected a JSON object")
        return raw

    def _write(self, bookings: Bookings, public_message: str) -> None:
        folder = os.path.dirname(os.path.abspath(self.path))
        tmp_name = None
        try:
            os.makedirs(folder, exist_ok=True)
            with tempfile.NamedTemporaryFile("w", delete=False, encoding="utf-8", dir=folder, suffix=".tmp") as tf:
                tmp_name = tf.name
                json.dump(bookings, tf, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise StorageError(public_message, f"write {self.path}: {e}") from e
        finally:
            # replace non fait : pas de .tmp orphelin dans le dossier
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)


BookingStore = Union[SqlBookingStore, JsonBookingStore]


def build_store(settings: Settings) -> BookingStore:
    if settings.backend == "json":
        return JsonBookingStore(settings.bookings_file, settings.conflict_policy)
    engine = create_engine(settings.database_url, pool_pre_ping=True)
    return SqlBookingStore(engine, settings.conflict_policy)
