# src/opkpi/extractors/section_extractor.py
from __future__ import annotations

import logging
import re
from typing import List

from opkpi.core.types import Section

logger = logging.getLogger(__name__)


# ======================================================================
# Header heuristics
# ======================================================================

HEADER_PATTERNS = [
    re.compile(r"^[A-Z\s]{3,}$"),             # ALL CAPS
    re.compile(r"^\d+\.\s+[A-Z]"),            # 1. Numbered
    re.compile(r"^[A-Z][a-z]+\s+[A-Z][a-z]+"),  # Title Case
]

KPI_VOCABULARY = [
    "metrics", "performance", "operational", "highlights", "key indicators",
    "subscribers", "users", "customers", "stores", "locations", "revenue per",
    "active users", "monthly active", "daily active", "engagement",
]


def is_section_header(line: str) -> bool:
    stripped = line.strip()
    return any(p.match(stripped) for p in HEADER_PATTERNS)


def kpi_likelihood(title: str, content: str) -> float:
    """
    Share of the KPI vocabulary present in title + content, doubled, capped at 1.
    """
    haystack = f"{title} {content}".lower()
    hits = sum(1 for kw in KPI_VOCABULARY if kw in haystack)
    return min(hits / len(KPI_VOCABULARY) * 2, 1.0)


# ======================================================================
# Segmenter
# ======================================================================

def extract_sections(text: str) -> List[Section]:
    """
    Split text into sections at header-looking lines.
    Sections without content are not emitted; empty text gives [].
    """
    sections: List[Section] = []
    title = ""
    content: List[str] = []

    def close() -> None:
        body = "".join(content)
        if body.strip():
            sections.append(Section(
                title=title,
                content=body,
                kpi_likelihood=kpi_likelihood(title, body),
            ))

    for line in text.split("\n"):
        if is_section_header(line):
            close()
            title = line.strip()
            content = []
        else:
            content.append(line + "\n")

    close()

    logger.debug("sections: %d found", len(sections))
    return sections
