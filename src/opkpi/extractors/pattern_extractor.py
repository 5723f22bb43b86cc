# src/opkpi/extractors/pattern_extractor.py
from __future__ import annotations

import logging
from typing import Iterable, Iterator, List

from opkpi.core.types import KPIPatternDescriptor, RawMatch

logger = logging.getLogger(__name__)


def iter_matches(text: str, descriptor: KPIPatternDescriptor) -> Iterator[RawMatch]:
    """
    Every occurrence of every template of one descriptor, template by template.
    """
    for idx, template in enumerate(descriptor.templates):
        for m in template.pattern.finditer(text):
            full = m.group(0)
            magnitude = m.group("magnitude") or ""
            unit = (m.group("unit") or "") if template.has_unit else ""

            logger.debug(
                "pattern hit %s (template %d): %r", descriptor.kpi_type, idx, full
            )

            yield RawMatch(
                kpi_type=descriptor.kpi_type,
                full_matched_text=full,
                captured_magnitude=magnitude,
                captured_unit=unit,
                span_context=full,
                template_index=idx,
                start=m.start(),
            )


def extract_raw_matches(
    text: str,
    catalog: Iterable[KPIPatternDescriptor],
) -> List[RawMatch]:
    """
    Scan the full text with every descriptor in catalog order.

    Pure candidate generation: nothing is validated or deduplicated here.
    """
    if not text:
        return []

    matches: List[RawMatch] = []
    for descriptor in catalog:
        matches.extend(iter_matches(text, descriptor))

    logger.info("pattern extractor: %d raw matches", len(matches))
    return matches
