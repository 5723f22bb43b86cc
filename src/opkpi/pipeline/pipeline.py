# src/opkpi/pipeline/pipeline.py
from __future__ import annotations

import logging
import time
import uuid
from typing import Any, List, Mapping, Optional

from opkpi.catalog import PatternCatalog, default_catalog
from opkpi.config import load_config
from opkpi.core.exceptions import DocumentInputError
from opkpi.core.types import (
    KNOWN_DOCUMENT_TYPES,
    DocumentMetadata,
    ExtractedKPI,
    ExtractionResult,
    ProcessedDocument,
    ProcessingStatus,
)

# Segmenters (informational)
from opkpi.extractors.section_extractor import extract_sections
from opkpi.extractors.table_extractor import extract_tables

# Matching, normalization, scoring
from opkpi.extractors.pattern_extractor import extract_raw_matches
from opkpi.normalization.pattern_normalizer import NormalizedMatch, normalize_raw_matches
from opkpi.normalization.scoring import compute_confidence

from opkpi.pipeline.dedup import deduplicate_kpis

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> int:
    return int(round((time.perf_counter() - start) * 1000))


def overall_confidence(kpis: List[ExtractedKPI]) -> float:
    """Mean KPI confidence; 0 for an empty list."""
    if not kpis:
        return 0.0
    return sum(k.confidence for k in kpis) / len(kpis)


# ----------------------------------------------------------
# Main Pipeline
# ----------------------------------------------------------
class KPIExtractionPipeline:
    """
    Per-document extraction:
        sections + tables (informational)
        -> pattern matches
        -> normalization (bad matches dropped)
        -> confidence scoring
        -> deduplication

    `run` never raises; failures come back as ExtractionResult(success=False).
    The catalog is read-only, so one pipeline can serve concurrent callers.
    """

    def __init__(
        self,
        catalog: Optional[PatternCatalog] = None,
        *,
        dedup_tolerance: Optional[float] = None,
    ):
        self.config = load_config()
        self.catalog = catalog
        self.dedup_tolerance = (
            dedup_tolerance if dedup_tolerance is not None else self.config.dedup_tolerance
        )

    # --------------------------------------------------
    # Document lifecycle
    # --------------------------------------------------

    def _new_document(self, meta: DocumentMetadata) -> ProcessedDocument:
        if meta.document_type not in KNOWN_DOCUMENT_TYPES:
            logger.info("pipeline: unrecognized document type '%s'", meta.document_type)

        doc_id = uuid.uuid4().hex[:12]
        return ProcessedDocument(
            id=doc_id,
            symbol=meta.symbol,
            document_type=meta.document_type,
            file_name=meta.file_name or doc_id,
            report_date=meta.report_date,
            fiscal_period=meta.fiscal_period,
            fiscal_year=meta.fiscal_year,
        )

    def _build_kpi(
        self,
        normalized: NormalizedMatch,
        document: ProcessedDocument,
    ) -> ExtractedKPI:
        match, value = normalized
        descriptor = self.catalog.get(match.kpi_type)
        confidence = compute_confidence(match, descriptor)

        return ExtractedKPI(
            symbol=document.symbol.upper(),
            kpi_type=descriptor.kpi_type,
            display_name=descriptor.display_name,
            category=descriptor.category,
            value=value,
            unit=descriptor.unit,
            date=document.report_date,
            period=document.fiscal_period,
            source_text=match.full_matched_text,
            source_document=document.file_name,
            confidence=confidence,
            quality_score=confidence,
        )

    def _extract(self, document: ProcessedDocument) -> List[ExtractedKPI]:
        text = document.extracted_text or ""

        document.sections = extract_sections(text)
        document.tables = extract_tables(text)

        raw = extract_raw_matches(text, self.catalog)
        normalized, dropped = normalize_raw_matches(raw, self.catalog)
        document.diagnostics.extend(dropped)

        candidates = [self._build_kpi(n, document) for n in normalized]
        return deduplicate_kpis(candidates, self.dedup_tolerance)

    # --------------------------------------------------
    # Public API
    # --------------------------------------------------

    def run(self, raw_text: Optional[str], metadata: Any) -> ExtractionResult:
        start = time.perf_counter()
        document: Optional[ProcessedDocument] = None

        try:
            meta = (
                metadata if isinstance(metadata, DocumentMetadata)
                else DocumentMetadata.from_mapping(metadata)
            )
            document = self._new_document(meta)
            document.transition(ProcessingStatus.PROCESSING)

            if self.catalog is None:
                self.catalog = default_catalog(self.config.catalog_path)

            if not isinstance(raw_text, str):
                raise DocumentInputError(
                    f"raw text must be a string, got {type(raw_text).__name__}"
                )
            document.extracted_text = raw_text

            kpis = self._extract(document)

        except Exception as exc:
            elapsed = _elapsed_ms(start)
            logger.exception("pipeline: extraction failed: %s", exc)

            if document is not None:
                document.extracted_kpis = []
                document.processing_time = elapsed
                if document.processing_status is ProcessingStatus.PROCESSING:
                    document.transition(ProcessingStatus.FAILED)

            return ExtractionResult(
                success=False,
                document=document,
                extracted_kpis=[],
                processing_time=elapsed,
                confidence=0.0,
                errors=[str(exc) or exc.__class__.__name__],
            )

        elapsed = _elapsed_ms(start)
        document.extracted_kpis = kpis
        document.processing_time = elapsed
        document.transition(ProcessingStatus.COMPLETED)

        confidence = overall_confidence(kpis)
        logger.info(
            "pipeline: %s %s -> %d KPIs (confidence %.2f, %d dropped, %d ms)",
            document.symbol, document.file_name, len(kpis), confidence,
            len(document.diagnostics), elapsed,
        )

        return ExtractionResult(
            success=True,
            document=document,
            extracted_kpis=list(kpis),
            processing_time=elapsed,
            confidence=confidence,
        )


# Convenience API
def extract_kpis(
    raw_text: Optional[str],
    metadata: Mapping[str, Any],
    catalog: Optional[PatternCatalog] = None,
) -> ExtractionResult:
    return KPIExtractionPipeline(catalog).run(raw_text, metadata)
