# ============================================================
# avatar.py — Couleurs de l'avatar pixel-art
# ------------------------------------------------------------
# Fonctions pures, sans accès au stockage :
#   color_of(name)     → couleur de base "#rrggbb" (hash du nom)
#   shade(hex, mode)   → teinte dérivée ("neutral" ou "deep")
#   palette(name)      → les trois couleurs utilisées par la UI
# Même nom → mêmes couleurs, à chaque appel.
# ============================================================
import colorsys
import string
from typing import NamedTuple, Optional

DEFAULT_COLOR = "#ec962f"
MODES = ("neutral", "deep")

# au-dessus : couleur "claire", on l'assombrit
LIGHT_THRESHOLD = 0.55


class AvatarPalette(NamedTuple):
    base: str
    neutral: str
    deep: str


def _to_int32(value: int) -> int:
    return (value + 2**31) % 2**32 - 2**31


def _code_units(text: str):
    # unités UTF-16 : un emoji compte pour deux, comme côté navigateur
    data = text.encode("utf-16-le")
    for i in range(0, len(data), 2):
        yield data[i] | (data[i + 1] << 8)


def color_of(name: str) -> str:
    h = 0
    for unit in _code_units(name):
        h = unit + (_to_int32(h << 5) - h)
    h = _to_int32(h)
    return "#" + "".join(f"{(h >> (i * 8)) & 0xFF:02x}" for i in range(3))


def _parse_hex(hex_color: str):
    clean = hex_color.removeprefix("#")
    if len(clean) != 6 or any(c not in string.hexdigits for c in clean):
        raise ValueError(f"Invalid HEX color {hex_color!r}, expected 6 digits (e.g. #ec962f)")
    return tuple(int(clean[i:i + 2], 16) / 255 for i in (0, 2, 4))


def _to_hex(r: float, g: float, b: float) -> str:
    # arrondi "half up", pas l'arrondi bancaire de round()
    return "#" + "".join(f"{int(x * 255 + 0.5):02x}" for x in (r, g, b))


# Teinte contrastée : une couleur claire est assombrie et désaturée,
# une couleur sombre est éclaircie. "deep" tire en plus la teinte vers le rouge.
def shade(hex_color: str, mode: str = "neutral") -> str:
    if mode not in MODES:
        raise ValueError(f"Unknown shade mode {mode!r}, expected one of {MODES}")

    r, g, b = _parse_hex(hex_color)
    h, l, s = colorsys.rgb_to_hls(r, g, b)
    is_light = l > LIGHT_THRESHOLD

    if mode == "neutral":
        if is_light:
            l, s = max(0.2, l * 0.6), max(0.2, s * 0.6)
        else:
            l, s = min(0.8, l * 1.4), min(0.9, s * 0.8)
    elif is_light:
        h, l, s = max(0.0, h - 0.05), max(0.15, l * 0.4), min(1.0, s * 1.2)
    else:
        h, l, s = max(0.0, h - 0.07), min(0.4, l * 1.3), min(1.0, s * 1.1)

    return _to_hex(*colorsys.hls_to_rgb(h, l, s))


def palette(name: Optional[str]) -> AvatarPalette:
    base = color_of(name) if name else DEFAULT_COLOR
    return AvatarPalette(base=base, neutral=shade(base, "neutral"), deep=shade(base, "deep"))
