"""Pull weight and dimensions out of free-form product page text.

Pages are mostly Brazilian retail listings, so numbers follow the pt-BR
convention ("1.234,56") and dimension labels are in Portuguese. Everything
here is a best-effort heuristic: the combined "A x B x C cm" form carries no
axis labels, so the values are assigned by size (smallest is height, middle
is width, largest is length), which is often but not always right.
"""

import math
import re

from app.schemas.product import Measurements

# "1.234,56" and "12.345" style tokens first so the thousands groups stay whole
_NUM = r"(\d{1,3}(?:\.\d{3})+(?:,\d+)?|\d+(?:[.,]\d+)?)"

_KG_RE = re.compile(_NUM + r"\s*(?:kg|quilos?|quilogramas?)\b")
_G_RE = re.compile(_NUM + r"\s*(?:g|gr|gramas?)\b")
_DIMS_RE = re.compile(
    _NUM + r"\s*[x×]\s*" + _NUM + r"\s*[x×]\s*" + _NUM + r"\s*(?:cm|cent[ií]metros?)\b"
)
_HEIGHT_RE = re.compile(r"altura[^0-9]{0,10}" + _NUM)
_WIDTH_RE = re.compile(r"largura[^0-9]{0,10}" + _NUM)
_LENGTH_RE = re.compile(r"comprimento[^0-9]{0,10}" + _NUM)

_THOUSANDS_DOT = re.compile(r"^\d{1,3}(?:\.\d{3})+$")
_PLAIN_NUMBER = re.compile(r"^\d+(?:\.\d+)?$")
_WS = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lower-case and collapse runs of whitespace to single spaces."""
    return _WS.sub(" ", text or "").strip().lower()


def parse_number(token: str) -> float | None:
    """Parse a pt-BR or plain decimal token. Returns None instead of raising.

    "12.345,67" -> 12345.67, "7,5" -> 7.5, "1.500" -> 1500.0, "1.5" -> 1.5
    """
    if not isinstance(token, str):
        return None
    s = token.strip()
    if "," in s:
        s = s.replace(".", "").replace(",", ".", 1)
    elif _THOUSANDS_DOT.match(s):
        s = s.replace(".", "")

    if not _PLAIN_NUMBER.match(s):
        return None
    value = float(s)
    return value if math.isfinite(value) else None


def _labeled(pattern: re.Pattern, text: str) -> float | None:
    m = pattern.search(text)
    return parse_number(m.group(1)) if m else None


def extract_weight(text: str) -> float | None:
    m = _KG_RE.search(text)
    if m:
        return parse_number(m.group(1))

    m = _G_RE.search(text)
    if m:
        grams = parse_number(m.group(1))
        if grams is not None:
            return round(grams / 1000, 3)
    return None


def extract_dimensions(text: str) -> tuple[float | None, float | None, float | None]:
    """Return (width_cm, height_cm, length_cm)."""
    m = _DIMS_RE.search(text)
    if m:
        values = [parse_number(g) for g in m.groups()]
        if all(v is not None for v in values):
            height, width, length = sorted(values)
            return width, height, length

    return (
        _labeled(_WIDTH_RE, text),
        _labeled(_HEIGHT_RE, text),
        _labeled(_LENGTH_RE, text),
    )


def extract_measurements(text: str) -> Measurements:
    text = normalize_text(text)
    width, height, length = extract_dimensions(text)
    return Measurements(
        weight_kg=extract_weight(text),
        width_cm=width,
        height_cm=height,
        length_cm=length,
    )
