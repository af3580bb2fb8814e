# ============================================================
# ui.py — Interface web (FastAPI + Jinja2 + htmx)
# ------------------------------------------------------------
# Grille de 10 cartes "Stage N" : libre ou réservé par X, avec
# l'avatar pixel-art coloré d'après le nom.
#
# Il réutilise directement la logique du Booking Service :
#  - même store injecté (get_store)
#  - même validation + écriture (claim_room)
# La confirmation "déjà réservé, sûr ?" est faite côté client
# (hx-confirm) ; le serveur applique la politique du store.
# ============================================================
import os
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from api import claim_room, get_store
from avatar import palette
from errors import ConflictError, ValidationError
from repository import Bookings, BookingStore
from slots import SLOT_IDS

templates = Jinja2Templates(directory=os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates"))

router = APIRouter()


def build_cards(bookings: Bookings, errors: Optional[dict] = None):
    errors = errors or {}
    return [
        {
            "slot_id": slot_id,
            "booked_by": name,
            "colors": palette(name),
            "error": errors.get(slot_id, ""),
        }
        for slot_id, name in bookings.items()
    ]


# Page principale de la UI
@router.get("/", response_class=HTMLResponse)
def ui_home(request: Request, store: BookingStore = Depends(get_store)):
    cards = build_cards(store.read_all())
    return templates.TemplateResponse(request, "index.html", {"cards": cards})


# Réservation via le formulaire d'une carte.
# On renvoie la grille mise à jour (swap htmx), avec l'erreur
# affichée sur la carte concernée si la saisie est refusée ;
# un numéro hors des 10 stages n'a pas de carte : erreur en tête de grille.
@router.post("/ui/claim/{room_id}", response_class=HTMLResponse)
def ui_claim(
    request: Request,
    room_id: str,
    name: str = Form(""),
    store: BookingStore = Depends(get_store),
):
    errors = {}
    page_error = ""
    try:
        bookings = claim_room(store, room_id, name)
    except (ValidationError, ConflictError) as e:
        print(f"[ui] claim room {room_id!r} refused: {e.message}", flush=True)
        if room_id in SLOT_IDS:
            errors[room_id] = e.message
        else:
            page_error = e.message
        bookings = store.read_all()
    context = {"cards": build_cards(bookings, errors), "page_error": page_error}
    return templates.TemplateResponse(request, "cards.html", context)
