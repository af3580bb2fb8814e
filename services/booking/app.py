# ============================================================
# app.py — Point d'entrée du service Stage Booking
# ------------------------------------------------------------
# Ce module initialise l'application FastAPI :
#   - Construit le store (SQL ou JSON) depuis la configuration
#   - Au démarrage, crée les 10 stages libres s'ils n'existent pas
#   - Monte les routes API et l'interface web (UI)
#   - Enregistre les handlers d'erreurs (400 / 409 / 500)
# ============================================================
from typing import Optional

from fastapi import FastAPI

from api import router
from errors import register_exception_handlers
from repository import BookingStore, build_store
from settings import load_settings
from ui import router as ui_router


def create_app(store: Optional[BookingStore] = None) -> FastAPI:
    app = FastAPI(title="Stage Booking Service")

    if store is None:
        settings = load_settings()
        store = build_store(settings)
        print(f"[booking] backend={settings.backend} policy={settings.conflict_policy}", flush=True)
    app.state.store = store

    # Exécuté au lancement : seed une seule fois, jamais d'écrasement
    @app.on_event("startup")
    def start():
        app.state.store.seed()

    register_exception_handlers(app)

    # Inclusion de l'interface utilisateur (UI)
    app.include_router(ui_router)

    # Inclusion des routes principales REST (API Booking)
    app.include_router(router)
    return app


app = create_app()
