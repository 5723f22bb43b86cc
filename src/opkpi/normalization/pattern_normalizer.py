# src/opkpi/normalization/pattern_normalizer.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

from opkpi.catalog import PatternCatalog
from opkpi.core.exceptions import NormalizationError
from opkpi.core.types import KPIPatternDescriptor, RawMatch
from opkpi.utils.numeric_parser import normalize_unit_token, parse_scaled_number

logger = logging.getLogger(__name__)

NormalizedMatch = Tuple[RawMatch, float]


def normalize_match(match: RawMatch, descriptor: KPIPatternDescriptor) -> float:
    """
    Canonical value of one raw match.

    The unit token only scales the number (thousand/million/billion). Whether
    the KPI is a count or USD comes from the descriptor, not from the token.
    """
    unit = normalize_unit_token(match.captured_unit)

    if unit and descriptor.unit_classes and unit not in descriptor.unit_classes:
        raise NormalizationError(
            f"unrecognized unit for '{descriptor.kpi_type}'",
            raw_value=match.captured_magnitude,
            raw_unit=match.captured_unit,
        )

    return parse_scaled_number(match.captured_magnitude, unit)


def normalize_raw_matches(
    matches: List[RawMatch],
    catalog: PatternCatalog,
) -> Tuple[List[NormalizedMatch], List[Dict[str, Any]]]:
    """
    Normalize all matches. Failures drop only the offending match and are
    returned as diagnostics records instead.
    """
    ok: List[NormalizedMatch] = []
    dropped: List[Dict[str, Any]] = []

    for match in matches:
        descriptor = catalog.get(match.kpi_type)
        if descriptor is None:
            raise KeyError(f"No descriptor for KPI type '{match.kpi_type}'")

        try:
            value = normalize_match(match, descriptor)
        except NormalizationError as exc:
            logger.warning(
                "pattern normalizer: dropped %s match %r: %s",
                match.kpi_type, match.full_matched_text, exc,
            )
            dropped.append({
                "kpiType": match.kpi_type,
                "matchedText": match.full_matched_text,
                "reason": exc.message,
            })
            continue

        ok.append((match, value))

    return ok, dropped
