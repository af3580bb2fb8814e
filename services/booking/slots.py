# ============================================================
# slots.py — Identifiants de stage + validation des entrées
# ------------------------------------------------------------
# Les dix stages sont fixés au déploiement : "1" … "10".
# Ce module valide :
#   - le numéro de stage (plage entière inclusive 1..10)
#   - le nom de la personne qui réserve (trim + non vide)
# Toute entrée invalide lève ValidationError (→ HTTP 400).
# ============================================================
from typing import Union

from errors import ValidationError

SLOT_COUNT = 10
SLOT_IDS = tuple(str(i) for i in range(1, SLOT_COUNT + 1))

MAX_NAME_LENGTH = 64


def is_valid_slot_id(candidate: Union[str, int, None]) -> bool:
    # bool est un int en Python : True ne doit pas devenir le stage 1
    if candidate is None or isinstance(candidate, bool):
        return False
    if isinstance(candidate, int):
        return 1 <= candidate <= SLOT_COUNT
    if not isinstance(candidate, str) or not (candidate.isascii() and candidate.isdigit()):
        return False
    # "05" refusé : l'identifiant doit revenir tel quel
    if candidate != str(int(candidate)):
        return False
    return 1 <= int(candidate) <= SLOT_COUNT


def parse_slot_id(candidate: Union[str, int, None]) -> str:
    if not is_valid_slot_id(candidate):
        raise ValidationError(f"Room must be 1-{SLOT_COUNT}")
    return str(candidate)


def clean_name(raw: object) -> str:
    if not isinstance(raw, str):
        raise ValidationError("Name is required")
    name = raw.strip()
    if not name:
        raise ValidationError("Name is required")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Name must be at most {MAX_NAME_LENGTH} characters")
    return name
