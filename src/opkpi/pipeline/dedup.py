from __future__ import annotations

import logging
from functools import reduce
from typing import Dict, List, Mapping, Sequence, Tuple

from opkpi.config import DEFAULT_DEDUP_TOLERANCE
from opkpi.core.types import ExtractedKPI

logger = logging.getLogger(__name__)

# kpi_type -> accepted (first_seen_index, kpi) pairs
_Accepted = Mapping[str, Tuple[Tuple[int, ExtractedKPI], ...]]


def is_same_fact(
    accepted: ExtractedKPI,
    candidate: ExtractedKPI,
    tolerance: float = DEFAULT_DEDUP_TOLERANCE,
) -> bool:
    """
    Same KPI type and within `tolerance` of the accepted value
    (relative to the accepted value). Equal values always match.
    """
    if accepted.kpi_type != candidate.kpi_type:
        return False
    if accepted.value == candidate.value:
        return True
    return abs(accepted.value - candidate.value) < tolerance * abs(accepted.value)


def deduplicate_kpis(
    kpis: Sequence[ExtractedKPI],
    tolerance: float = DEFAULT_DEDUP_TOLERANCE,
) -> List[ExtractedKPI]:
    """
    Collapse near-duplicate KPIs, keeping the most confident variant.

    Candidates are folded in confidence order (stable, so ties keep the
    first-seen one). Survivors come back in their original document order.
    """
    ranked = sorted(enumerate(kpis), key=lambda item: -item[1].confidence)

    def step(acc: _Accepted, item: Tuple[int, ExtractedKPI]) -> _Accepted:
        _, kpi = item
        bucket = acc.get(kpi.kpi_type, ())
        if any(is_same_fact(kept, kpi, tolerance) for _, kept in bucket):
            return acc
        merged: Dict[str, Tuple[Tuple[int, ExtractedKPI], ...]] = dict(acc)
        merged[kpi.kpi_type] = bucket + (item,)
        return merged

    accepted = reduce(step, ranked, {})

    survivors = sorted(
        (item for bucket in accepted.values() for item in bucket),
        key=lambda item: item[0],
    )
    result = [kpi for _, kpi in survivors]

    if len(result) != len(kpis):
        logger.debug("dedup: %d -> %d KPIs", len(kpis), len(result))
    return result
