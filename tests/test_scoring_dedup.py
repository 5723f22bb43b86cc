# tests/test_scoring_dedup.py
from dataclasses import replace

import pytest

from opkpi.catalog import default_catalog
from opkpi.core.types import ExtractedKPI, KPIPatternDescriptor, RawMatch
from opkpi.normalization.scoring import compute_confidence
from opkpi.pipeline.dedup import deduplicate_kpis, is_same_fact


def _raw(kpi_type, text):
    return RawMatch(
        kpi_type=kpi_type,
        full_matched_text=text,
        captured_magnitude="2",
        captured_unit="million",
        span_context=text,
    )


def _kpi(kpi_type, value, confidence, source=""):
    return ExtractedKPI(
        symbol="ACME",
        kpi_type=kpi_type,
        display_name=kpi_type.title(),
        category="operational",
        value=value,
        unit="count",
        date="2024-10-17",
        period="Q3",
        source_text=source or f"{kpi_type} {value}",
        source_document="release.txt",
        confidence=confidence,
        quality_score=confidence,
    )


# ---------------------------------------------------------------------
# Confidence
# ---------------------------------------------------------------------

def test_base_and_context_boost():
    subs = default_catalog().get("subscribers")

    assert compute_confidence(_raw("subscribers", "2 million"), subs) == pytest.approx(0.7)
    assert compute_confidence(
        _raw("subscribers", "we have 2 million subscribers"), subs
    ) == pytest.approx(0.75)
    assert compute_confidence(
        _raw("subscribers", "2 million subscribers, customers, users and members"), subs
    ) == pytest.approx(0.9)


def test_exclusion_penalty_is_strict():
    subs = default_catalog().get("subscribers")

    plain = compute_confidence(_raw("subscribers", "gained 2 million subscribers"), subs)
    lost = compute_confidence(_raw("subscribers", "lost 2 million subscribers"), subs)

    assert lost < plain
    assert lost == pytest.approx(plain - 0.15)


def test_keywords_are_case_insensitive():
    mau = default_catalog().get("mau")
    upper = compute_confidence(_raw("mau", "MAU: 2 million"), mau)
    lower = compute_confidence(_raw("mau", "mau: 2 million"), mau)

    assert upper == lower > 0.7


def test_confidence_is_clamped():
    heavy = KPIPatternDescriptor(
        kpi_type="stores",
        templates=(),
        display_name="Store Count",
        category="operational",
        unit="count",
        exclude_keywords=("closed", "shuttered", "former", "sold", "exited"),
    )
    assert compute_confidence(
        _raw("stores", "closed shuttered former sold exited stores"), heavy
    ) == pytest.approx(0.1)

    rich = replace(heavy, context_keywords=("store",), exclude_keywords=())
    assert compute_confidence(
        _raw("stores", "stores"), rich, base_confidence=0.95
    ) == pytest.approx(1.0)


def test_no_context_keywords_no_boost():
    bare = KPIPatternDescriptor(
        kpi_type="x", templates=(), display_name="X", category="growth", unit="count",
    )
    assert compute_confidence(_raw("x", "anything at all"), bare) == pytest.approx(0.7)


# ---------------------------------------------------------------------
# Deduplication
# ---------------------------------------------------------------------

def test_stores_within_one_percent_keep_higher_confidence():
    low = _kpi("stores", 1200, 0.75, "Store count: 1,200")
    high = _kpi("stores", 1205, 0.85, "operated 1,205 retail stores")

    out = deduplicate_kpis([low, high])
    assert out == [high]

    out = deduplicate_kpis([high, low])
    assert out == [high]


def test_ties_keep_first_seen():
    a = _kpi("stores", 1200, 0.75, "first")
    b = _kpi("stores", 1205, 0.75, "second")

    assert deduplicate_kpis([a, b]) == [a]


def test_distinct_types_and_distant_values_survive():
    subs_now = _kpi("subscribers", 50_200_000, 0.75)
    subs_then = _kpi("subscribers", 48_000_000, 0.7)
    stores = _kpi("stores", 50_200_000, 0.7)

    out = deduplicate_kpis([subs_now, subs_then, stores])
    assert out == [subs_now, subs_then, stores]


def test_dedup_is_idempotent():
    kpis = [
        _kpi("stores", 1200, 0.75),
        _kpi("stores", 1205, 0.85),
        _kpi("stores", 1500, 0.7),
        _kpi("employees", 12_400, 0.7),
        _kpi("employees", 12_401, 0.7),
        _kpi("mau", 81_500_000, 0.83),
    ]

    once = deduplicate_kpis(kpis)
    assert deduplicate_kpis(once) == once
    assert len(once) == 4


def test_dedup_does_not_mutate_input():
    kpis = [_kpi("stores", 1200, 0.75), _kpi("stores", 1205, 0.85)]
    snapshot = list(kpis)

    deduplicate_kpis(kpis)
    assert kpis == snapshot


def test_zero_values_collapse():
    a = _kpi("stores", 0, 0.7)
    b = _kpi("stores", 0, 0.8)

    assert is_same_fact(a, b)
    assert deduplicate_kpis([a, b]) == [b]


def test_custom_tolerance():
    a = _kpi("stores", 1000, 0.8)
    b = _kpi("stores", 1040, 0.7)

    assert len(deduplicate_kpis([a, b])) == 2
    assert deduplicate_kpis([a, b], tolerance=0.05) == [a]
