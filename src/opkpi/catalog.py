# src/opkpi/catalog.py
from __future__ import annotations

import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from opkpi.config import DEFAULT_CATALOG_PATH, load_json, load_yaml
from opkpi.core.exceptions import CatalogError
from opkpi.core.types import KPIPatternDescriptor, MatchTemplate

logger = logging.getLogger(__name__)

ALLOWED_FIELDS = ("magnitude", "unit")
CATEGORIES = ("operational", "customer", "financial", "efficiency", "growth")


# =====================================================================
# Template compilation
# =====================================================================

@lru_cache(maxsize=256)
def _compile_template(source: str) -> MatchTemplate:
    try:
        pattern = re.compile(source, re.IGNORECASE)
    except re.error as exc:
        raise CatalogError(f"Template does not compile: {source!r} ({exc})")

    fields = tuple(pattern.groupindex)
    if "magnitude" not in fields:
        raise CatalogError(f"Template has no 'magnitude' group: {source!r}")

    unknown = [f for f in fields if f not in ALLOWED_FIELDS]
    if unknown:
        raise CatalogError(f"Template declares unknown groups {unknown}: {source!r}")

    return MatchTemplate(pattern=pattern, fields=fields)


def build_descriptor(entry: Mapping[str, Any]) -> KPIPatternDescriptor:
    """Turn one catalog entry (as loaded from YAML/JSON) into a descriptor."""
    kpi_type = entry.get("type")
    if not kpi_type:
        raise CatalogError("Catalog entry is missing 'type'")

    sources = entry.get("templates") or []
    if not sources:
        raise CatalogError("Catalog entry has no templates", kpi_type=kpi_type)

    category = entry.get("category", "operational")
    if category not in CATEGORIES:
        raise CatalogError(f"Unknown category '{category}'", kpi_type=kpi_type)

    return KPIPatternDescriptor(
        kpi_type=kpi_type,
        templates=tuple(_compile_template(s) for s in sources),
        display_name=entry.get("display_name") or kpi_type.replace("_", " ").title(),
        category=category,
        unit=entry.get("unit", "count"),
        unit_classes=frozenset(str(u).lower() for u in entry.get("unit_classes") or []),
        context_keywords=tuple(entry.get("context_keywords") or []),
        exclude_keywords=tuple(entry.get("exclude_keywords") or []),
        industry_hint=entry.get("industry"),
    )


# =====================================================================
# Catalog
# =====================================================================

class PatternCatalog:
    """
    Read-only, ordered registry of KPI pattern descriptors.
    Safe to share between concurrently running pipelines.
    """

    def __init__(self, descriptors: List[KPIPatternDescriptor]):
        seen = set()
        for d in descriptors:
            if d.kpi_type in seen:
                raise CatalogError("Duplicate KPI type in catalog", kpi_type=d.kpi_type)
            seen.add(d.kpi_type)

        self._descriptors: Tuple[KPIPatternDescriptor, ...] = tuple(descriptors)
        self._by_type: Dict[str, KPIPatternDescriptor] = {
            d.kpi_type: d for d in self._descriptors
        }

    def __iter__(self) -> Iterator[KPIPatternDescriptor]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, kpi_type: object) -> bool:
        return kpi_type in self._by_type

    @property
    def kpi_types(self) -> List[str]:
        return [d.kpi_type for d in self._descriptors]

    def get(self, kpi_type: str) -> Optional[KPIPatternDescriptor]:
        return self._by_type.get(kpi_type)

    @classmethod
    def from_entries(cls, entries: List[Mapping[str, Any]]) -> "PatternCatalog":
        return cls([build_descriptor(e) for e in entries])


def load_catalog(path: Optional[Path] = None) -> PatternCatalog:
    """
    Load a catalog file (.yaml/.yml or .json) with a top-level `kpis` list.
    """
    path = Path(path or DEFAULT_CATALOG_PATH)
    if not path.exists():
        raise CatalogError(f"Catalog file not found: {path}")

    data = load_json(path) if path.suffix.lower() == ".json" else load_yaml(path)
    entries = (data or {}).get("kpis") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise CatalogError(f"Catalog file has no 'kpis' list: {path}")

    catalog = PatternCatalog.from_entries(entries)
    logger.info("catalog: loaded %d KPI descriptors from %s", len(catalog), path)
    return catalog


@lru_cache(maxsize=8)
def _cached_catalog(path_key: str) -> PatternCatalog:
    return load_catalog(Path(path_key))


def default_catalog(path: Optional[Path] = None) -> PatternCatalog:
    """Catalog loaded once per path and reused."""
    return _cached_catalog(str(path or DEFAULT_CATALOG_PATH))
