# ============================================================
# errors.py — Erreurs métier et leur traduction HTTP
# ------------------------------------------------------------
# Chaque erreur porte son code HTTP :
#   - ValidationError : stage ou nom invalide      → 400
#   - ConflictError   : stage déjà pris (reject)   → 409
#   - StorageError    : lecture/écriture échouée   → 500
# Les détails internes sont loggés côté serveur, jamais renvoyés.
# ============================================================
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class BookingError(Exception):
    def __init__(self, message: str, status_code: int):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ValidationError(BookingError):
    def __init__(self, message: str):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class ConflictError(BookingError):
    def __init__(self, message: str):
        super().__init__(message, status.HTTP_409_CONFLICT)


# message public ; cause reste côté serveur (logs)
class StorageError(BookingError):
    def __init__(self, message: str, cause: str = ""):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.cause = cause


async def booking_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, StorageError):
        print(f"[booking] {request.method} {request.url.path} storage error: {exc.cause}", flush=True)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# FastAPI renvoie 422 par défaut ; le contrat de l'API est 400
async def request_validation_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    print(f"[booking] {request.method} {request.url.path} unexpected {type(exc).__name__}: {exc}", flush=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
