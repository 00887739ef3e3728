"""Value coercion for loosely typed upstream records.

Backend rows arrive as untyped key/value records (IPC payloads, DataFrames read
from exports). Every helper here is total: bad input maps to ``None`` or a
documented default, never to an exception. ``parse_float_strict`` is the one
exception and is reserved for configuration values.
"""

from __future__ import annotations

import math
import re
import unicodedata
from datetime import date, datetime

import pandas as pd


def _is_missing(value) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        # list-like values: pd.isna returns an array
        return False


def normalize_col_name(name: str) -> str:
    """Normalize a column/field name to a snake_case token.

    ``"Weight (t)"`` -> ``"weight_t"``, ``"usedCapacityT"`` -> ``"used_capacity_t"``.
    """
    s = str(name or "").strip()
    # camelCase -> snake_case before lowering
    s = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", s).lower()
    s = unicodedata.normalize("NFKD", s)
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    s = s.replace("\u00a0", " ")
    s = re.sub(r"[^a-z0-9 _]+", " ", s)
    s = re.sub(r"[\s_]+", "_", s).strip("_")
    return s


def clean_key(value) -> str:
    """Trimmed string form of an identifier; ``""`` when missing."""
    if _is_missing(value):
        return ""
    s = str(value).replace("\u00a0", " ").strip()
    if s.lower() == "nan":
        return ""
    return s


def to_finite_float(value) -> float | None:
    """Return ``float(value)`` when it is a finite number, else ``None``."""
    if _is_missing(value) or isinstance(value, bool):
        return None
    try:
        f = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(f):
        return None
    return f


def positive_or(value, default: float) -> float:
    """Finite, strictly positive ``value`` or ``default``."""
    f = to_finite_float(value)
    if f is None or f <= 0:
        return default
    return f


def to_int(value, default: int = 0) -> int:
    f = to_finite_float(value)
    if f is None:
        return default
    return int(f)


def to_bool(value) -> bool | None:
    """Coerce bool-ish values (``1``, ``"true"``, ``"Y"``...) to ``bool``.

    Returns ``None`` when the value is missing or not recognizable.
    """
    if _is_missing(value):
        return None
    if isinstance(value, bool):
        return value
    s = str(value).strip().lower()
    if s in {"1", "true", "t", "yes", "y", "x"}:
        return True
    if s in {"0", "false", "f", "no", "n"}:
        return False
    f = to_finite_float(s)
    if f is None:
        return None
    return f != 0


def coerce_iso_date(value) -> str | None:
    """Coerce common date representations to ISO ``YYYY-MM-DD``.

    ``datetime``/``date``/pandas ``Timestamp`` and ISO strings (with or without
    a time part) are accepted, as are ``YYYY/MM/DD``. Anything else is ``None``.
    """
    if _is_missing(value):
        return None

    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    # pandas Timestamp
    if hasattr(value, "to_pydatetime"):
        return value.to_pydatetime().date().isoformat()

    s = str(value).strip()
    if not s:
        return None
    try:
        return datetime.fromisoformat(s).date().isoformat()
    except ValueError:
        pass
    # "2024-01-10T00:00:00Z" and similar backend timestamps
    try:
        return date.fromisoformat(s[:10]).isoformat()
    except ValueError:
        pass
    try:
        return datetime.strptime(s, "%Y/%m/%d").date().isoformat()
    except ValueError:
        return None


def parse_float_strict(value, *, field: str) -> float:
    """Parse a finite float from a configuration value.

    Raises ValueError naming ``field`` otherwise.
    """
    if _is_missing(value) or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"{field} is empty")
    f = to_finite_float(value)
    if f is None:
        raise ValueError(f"{field} is not a finite number: {value!r}")
    return f
