# src/opkpi/core/types.py

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from opkpi.core.exceptions import DocumentInputError, StatusTransitionError


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


# =====================================================================
# Pattern catalog entries
# =====================================================================

@dataclass(frozen=True)
class MatchTemplate:
    """
    One compiled matching rule.

    `fields` lists the named groups the regex produces. `magnitude` is always
    present, `unit` is optional.
    """
    pattern: re.Pattern
    fields: Tuple[str, ...]

    @property
    def has_unit(self) -> bool:
        return "unit" in self.fields


@dataclass(frozen=True)
class KPIPatternDescriptor:
    """
    Catalog entry mapping a metric type to its templates and keyword sets.

    `industry_hint` is informational only and never gates matching.
    """
    kpi_type: str
    templates: Tuple[MatchTemplate, ...]
    display_name: str
    category: str
    unit: str
    unit_classes: FrozenSet[str] = frozenset()
    context_keywords: Tuple[str, ...] = ()
    exclude_keywords: Tuple[str, ...] = ()
    industry_hint: Optional[str] = None


@dataclass(frozen=True)
class RawMatch:
    kpi_type: str
    full_matched_text: str
    captured_magnitude: str
    captured_unit: str
    span_context: str
    template_index: int = 0
    start: int = 0


# =====================================================================
# Document structure
# =====================================================================

@dataclass
class Section:
    title: str
    content: str
    kpi_likelihood: float = 0.0
    page_numbers: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "content": self.content,
            "pageNumbers": list(self.page_numbers),
            "kpiLikelihood": self.kpi_likelihood,
        }


@dataclass
class Table:
    headers: List[str]
    rows: List[List[str]]
    context: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "headers": list(self.headers),
            "rows": [list(r) for r in self.rows],
            "context": self.context,
        }


# =====================================================================
# Output records
# =====================================================================

@dataclass(frozen=True)
class ExtractedKPI:
    """
    Final KPI record. Immutable once the pipeline has produced it;
    downstream validators build new records via `dataclasses.replace`.
    """
    symbol: str
    kpi_type: str
    display_name: str
    category: str
    value: float
    unit: str
    date: str
    period: str
    source_text: str
    source_document: str
    confidence: float
    quality_score: float
    extraction_method: str = "pattern"
    validated: bool = False
    anomaly_flags: Tuple[str, ...] = ()
    yoy_change: Optional[float] = None
    qoq_change: Optional[float] = None
    id: Optional[str] = None
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "symbol": self.symbol,
            "kpiType": self.kpi_type,
            "displayName": self.display_name,
            "category": self.category,
            "value": self.value,
            "unit": self.unit,
            "date": self.date,
            "period": self.period,
            "sourceText": self.source_text,
            "sourceDocument": self.source_document,
            "extractionMethod": self.extraction_method,
            "confidence": self.confidence,
            "validated": self.validated,
            "qualityScore": self.quality_score,
            "anomalyFlags": list(self.anomaly_flags),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.id is not None:
            out["id"] = self.id
        if self.yoy_change is not None:
            out["yoyChange"] = self.yoy_change
        if self.qoq_change is not None:
            out["qoqChange"] = self.qoq_change
        return out


KNOWN_DOCUMENT_TYPES = (
    "10-K",
    "10-Q",
    "8-K",
    "earnings-release",
    "investor-presentation",
    "transcript",
    "other",
)


@dataclass(frozen=True)
class DocumentMetadata:
    symbol: str
    document_type: str
    report_date: str
    fiscal_period: str
    fiscal_year: int
    file_name: Optional[str] = None

    @classmethod
    def from_mapping(cls, meta: Mapping[str, Any]) -> "DocumentMetadata":
        """
        Build metadata from either camelCase (wire) or snake_case keys.
        A missing fiscal year falls back to the year of the report date.
        """
        if not isinstance(meta, Mapping):
            raise DocumentInputError(
                f"metadata must be a mapping, got {type(meta).__name__}"
            )

        def pick(*keys: str, default: Any = None) -> Any:
            for k in keys:
                if meta.get(k) is not None:
                    return meta[k]
            return default

        symbol = pick("symbol")
        if not symbol:
            raise DocumentInputError("metadata is missing 'symbol'")

        report_date = str(pick("reportDate", "report_date", default=""))
        fiscal_year = pick("fiscalYear", "fiscal_year")
        if fiscal_year is None:
            m = re.match(r"^(\d{4})", report_date)
            if not m:
                raise DocumentInputError(
                    "metadata has no fiscal year and no parseable report date",
                    {"reportDate": report_date},
                )
            fiscal_year = m.group(1)

        try:
            fiscal_year = int(fiscal_year)
        except (TypeError, ValueError):
            raise DocumentInputError(
                "fiscal year is not an integer", {"fiscalYear": fiscal_year}
            )

        return cls(
            symbol=str(symbol),
            document_type=str(pick("documentType", "document_type", default="other")),
            report_date=report_date,
            fiscal_period=str(pick("fiscalPeriod", "fiscal_period", default="")),
            fiscal_year=fiscal_year,
            file_name=pick("fileName", "file_name"),
        )


class ProcessingStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


_ALLOWED_TRANSITIONS = {
    ProcessingStatus.PENDING: {ProcessingStatus.PROCESSING},
    ProcessingStatus.PROCESSING: {ProcessingStatus.COMPLETED, ProcessingStatus.FAILED},
    ProcessingStatus.COMPLETED: set(),
    ProcessingStatus.FAILED: set(),
}


@dataclass
class ProcessedDocument:
    id: str
    symbol: str
    document_type: str
    file_name: str
    report_date: str
    fiscal_period: str
    fiscal_year: int
    processing_status: ProcessingStatus = ProcessingStatus.PENDING
    processed_at: Optional[str] = None
    extracted_text: Optional[str] = None
    sections: List[Section] = field(default_factory=list)
    tables: List[Table] = field(default_factory=list)
    extracted_kpis: List[ExtractedKPI] = field(default_factory=list)
    diagnostics: List[Dict[str, Any]] = field(default_factory=list)
    processing_time: int = 0
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)

    def transition(self, status: ProcessingStatus) -> None:
        """Move to `status`; only pending -> processing -> completed|failed is legal."""
        if status not in _ALLOWED_TRANSITIONS[self.processing_status]:
            raise StatusTransitionError(self.processing_status.value, status.value)
        self.processing_status = status
        self.updated_at = utc_now()
        if status in (ProcessingStatus.COMPLETED, ProcessingStatus.FAILED):
            self.processed_at = self.updated_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "documentType": self.document_type,
            "fileName": self.file_name,
            "reportDate": self.report_date,
            "fiscalPeriod": self.fiscal_period,
            "fiscalYear": self.fiscal_year,
            "processingStatus": self.processing_status.value,
            "processedAt": self.processed_at,
            "extractedText": self.extracted_text,
            "sections": [s.to_dict() for s in self.sections],
            "tables": [t.to_dict() for t in self.tables],
            "extractedKPIs": [k.to_dict() for k in self.extracted_kpis],
            "diagnostics": [dict(d) for d in self.diagnostics],
            "processingTime": self.processing_time,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class ExtractionResult:
    """
    Envelope handed to storage/UI collaborators.
    Callers must check `success` before trusting `extracted_kpis`.
    """
    success: bool
    document: Optional[ProcessedDocument]
    extracted_kpis: List[ExtractedKPI]
    processing_time: int
    confidence: float
    errors: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "success": self.success,
            "document": self.document.to_dict() if self.document else None,
            "extractedKPIs": [k.to_dict() for k in self.extracted_kpis],
            "processingTime": self.processing_time,
            "confidence": self.confidence,
        }
        if self.errors is not None:
            out["errors"] = list(self.errors)
        return out
