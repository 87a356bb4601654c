from __future__ import annotations

import math
import re
import unicodedata
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

# Spreadsheet exports write numbers the way a JS runtime coerces them, so
# cells and column headers are parsed with the same rules.
_DECIMAL_RE = re.compile(r"^[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)$")
_RADIX_RE = re.compile(r"^0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)$")
_WHITESPACE_RE = re.compile(r"\s+")

Number = Union[int, float]


@dataclass(frozen=True)
class LabeledValue:
    label: str
    value: float


def _int_to_float(n: int) -> float:
    try:
        return float(n)
    except OverflowError:
        return math.inf if n > 0 else -math.inf


def _parse_number_text(text: str) -> float:
    s = text.strip()
    if not s:
        return 0.0
    if _DECIMAL_RE.match(s):
        if s.lstrip("+-") == "Infinity":
            return -math.inf if s.startswith("-") else math.inf
        return float(s)
    if _RADIX_RE.match(s):
        return _int_to_float(int(s, 0))
    return math.nan


def to_number(value: Any) -> float:
    """Coerce a cell to a float. Blank cells count as 0, garbage as NaN; never raises."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, int):
        return _int_to_float(value)
    if isinstance(value, float):
        return value
    return _parse_number_text(to_text(value))


def to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    return str(value)


def is_numeric_key(key: Any) -> bool:
    return not math.isnan(_parse_number_text(str(key)))


def labeled_value(row: Any) -> Optional[LabeledValue]:
    """Recover ``(label, value)`` from a row with unpredictable column names.

    The label is the first column whose header is not a number; the value is the
    first column whose header *is* a number (exports use the grand total, e.g.
    ``"459"``, as the header of the counts column). Returns ``None`` for rows
    with no keys. A missing label yields ``""``, a missing value yields ``0``.
    """
    if not isinstance(row, Mapping) or not row:
        return None

    label_key = next((k for k in row if not is_numeric_key(k)), None)
    value_key = next((k for k in row if is_numeric_key(k)), None)

    label = to_text(row[label_key]).strip() if label_key is not None else ""
    value = to_number(row[value_key] if value_key is not None else None)
    return LabeledValue(label=label, value=value)


def normalize_key(text: Any) -> str:
    """Lowercase, strip diacritics and collapse whitespace (``"Gravità  AA"`` -> ``"gravita aa"``)."""
    decomposed = unicodedata.normalize("NFD", str(text).lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE_RE.sub(" ", stripped).strip()


def tidy_number(value: float) -> Number:
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return value
