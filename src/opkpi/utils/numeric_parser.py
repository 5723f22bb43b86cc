# src/opkpi/utils/numeric_parser.py
from __future__ import annotations

import math
import re
from typing import Optional

from opkpi.core.exceptions import NormalizationError


# All known whitespace variants (regular + non-breaking)
SPACE_CHARS = [
    "\u0020",  # normal space
    "\u00A0",  # NBSP
    "\u2007",  # figure space
    "\u202F",  # narrow NBSP
]

# Scale tokens only. Currency and count nouns ("$", "stores") scale by 1.
MULTIPLIERS = {
    "k": 1_000,
    "thousand": 1_000,
    "thousands": 1_000,
    "m": 1_000_000,
    "mil": 1_000_000,
    "million": 1_000_000,
    "millions": 1_000_000,
    "bil": 1_000_000_000,
    "billion": 1_000_000_000,
    "billions": 1_000_000_000,
}

_NUMBER_RE = re.compile(r"^\d*\.?\d+$|^\d+\.$")


def _normalize_spaces(s: str) -> str:
    """Replace all types of weird spaces with a normal space."""
    for ch in SPACE_CHARS:
        s = s.replace(ch, " ")
    return s


def normalize_unit_token(raw_unit: Optional[str]) -> str:
    """Lowercase and trim a captured unit token; None becomes ''."""
    if not raw_unit:
        return ""
    return _normalize_spaces(raw_unit).strip().lower()


def parse_magnitude(raw: Optional[str]) -> float:
    """
    Parse a captured magnitude such as "50.2", "1,205" or "12,400.5".

    Thousands separators (commas and spaces) are stripped. Anything that is
    not a plain decimal number afterwards raises NormalizationError.
    """
    if raw is None:
        raise NormalizationError("magnitude is missing")

    s = _normalize_spaces(raw).strip().replace(",", "").replace(" ", "")
    if not s or not _NUMBER_RE.match(s):
        raise NormalizationError("magnitude is not numeric", raw_value=raw)

    value = float(s)
    if not math.isfinite(value):
        raise NormalizationError("magnitude is not finite", raw_value=raw)

    return value


def scale_multiplier(unit: Optional[str]) -> float:
    """Multiplier for a scale token; 1 for no token or a non-scale unit noun."""
    return float(MULTIPLIERS.get(normalize_unit_token(unit), 1))


def parse_scaled_number(raw: Optional[str], unit: Optional[str] = None) -> float:
    """
    Parse magnitude and apply scale:
      - ("50.2", "million")  -> 50_200_000
      - ("50.2", "thousand") -> 50_200
      - ("50.2", None)       -> 50.2
    """
    return parse_magnitude(raw) * scale_multiplier(unit)
