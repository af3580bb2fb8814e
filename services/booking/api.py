# ============================================================
# Booking API Router
# ------------------------------------------------------------
# Expose les endpoints REST pour consulter les 10 stages et
# en réserver un. Le store (SQL ou JSON) est injecté par requête
# via app.state.store : aucun singleton au niveau module.
# ============================================================
from typing import List

from fastapi import APIRouter, Depends, Request

from models import ClaimByPathRequest, ClaimRequest, SlotOut
from repository import Bookings, BookingStore
from slots import clean_name, parse_slot_id

router = APIRouter()


# Dépendance FastAPI : fournit le store configuré au démarrage
def get_store(request: Request) -> BookingStore:
    return request.app.state.store


# Validation + écriture, partagée avec la UI (ui.py)
def claim_room(store: BookingStore, room: object, raw_name: object) -> Bookings:
    slot_id = parse_slot_id(room)
    name = clean_name(raw_name)
    bookings = store.claim(slot_id, name)
    print(f"[booking] room {slot_id} booked by {name!r}", flush=True)
    return bookings


# ------------------------------------------------------------
# GET /api/bookings — Les 10 stages, triés par numéro
# ------------------------------------------------------------
# Toujours 10 entrées, booked_by = null pour un stage libre.
# ------------------------------------------------------------
@router.get("/api/bookings", response_model=List[SlotOut])
def list_bookings(store: BookingStore = Depends(get_store)):
    bookings = store.read_all()
    return [SlotOut(slot_id=slot_id, booked_by=name) for slot_id, name in bookings.items()]


# ------------------------------------------------------------
# POST /api/bookings — Réserver un stage
# ------------------------------------------------------------
# Corps : {"room": "5", "name": "Carol"}
# - room hors 1..10 → 400, nom vide → 400
# - la politique de conflit est celle du store (overwrite/reject)
# ------------------------------------------------------------
@router.post("/api/bookings")
def book_room(body: ClaimRequest, store: BookingStore = Depends(get_store)):
    claim_room(store, body.room, body.name)
    return {"success": True}


# Variante avec le numéro dans le chemin : POST /api/bookings/5 {"name": "Carol"}
@router.post("/api/bookings/{room_id}")
def book_room_by_path(room_id: str, body: ClaimByPathRequest, store: BookingStore = Depends(get_store)):
    claim_room(store, room_id, body.name)
    return {"success": True}


@router.get("/health")
def health():
    return {"ok": True}
