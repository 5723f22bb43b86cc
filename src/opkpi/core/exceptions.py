# src/opkpi/core/exceptions.py
"""
Exceptions raised by the KPI extraction engine.

Match-level problems (NormalizationError) are recovered inside the pipeline.
Everything else surfaces as a failed ExtractionResult.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class KPIEngineError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class CatalogError(KPIEngineError):
    """Raised when a pattern catalog file is missing or malformed."""

    def __init__(self, message: str, kpi_type: Optional[str] = None):
        details = {}
        if kpi_type:
            details["kpi_type"] = kpi_type
        super().__init__(message, details)


class NormalizationError(KPIEngineError):
    """Raised when a captured magnitude/unit pair cannot be turned into a number."""

    def __init__(self, message: str, raw_value: Optional[str] = None, raw_unit: Optional[str] = None):
        details = {}
        if raw_value is not None:
            details["raw_value"] = raw_value
        if raw_unit:
            details["raw_unit"] = raw_unit
        super().__init__(message, details)


class StatusTransitionError(KPIEngineError):
    """Raised on an illegal ProcessedDocument status change."""

    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Illegal status transition: {current} -> {requested}",
            {"current": current, "requested": requested},
        )


class DocumentInputError(KPIEngineError):
    """Raised when the caller hands the pipeline unusable text or metadata."""
    pass
