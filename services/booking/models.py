# ============================================================
# models.py — Modèles SQLModel (Stage Booking Service)
# ------------------------------------------------------------
#   1️. StageBooking : une ligne par stage (table "bookings")
#   2️. ClaimRequest / ClaimByPathRequest : corps des POST
#   3️. SlotOut : une entrée de la réponse GET /api/bookings
# ============================================================
from typing import Optional, Union

from pydantic import StrictInt, StrictStr
from sqlmodel import Field, SQLModel


# ------------------------------------------------------------
# StageBooking
# ------------------------------------------------------------
# room_id est la clé primaire : au plus une ligne par stage,
# ce qui permet l'upsert ON CONFLICT (room_id).
# booked_by = None → stage libre.
# ------------------------------------------------------------
class StageBooking(SQLModel, table=True):
    __tablename__ = "bookings"

    room_id: str = Field(primary_key=True, max_length=2)
    booked_by: Optional[str] = None


# Le type seul est vérifié ici ; la plage 1..10 et le trim
# sont faits par slots.parse_slot_id / slots.clean_name.
class ClaimRequest(SQLModel):
    room: Union[StrictStr, StrictInt]
    name: str


class ClaimByPathRequest(SQLModel):
    name: str


class SlotOut(SQLModel):
    slot_id: str
    booked_by: Optional[str] = None
