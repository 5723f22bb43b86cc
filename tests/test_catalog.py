# tests/test_catalog.py
from pathlib import Path

import pytest

from opkpi.catalog import PatternCatalog, default_catalog, load_catalog
from opkpi.core.exceptions import CatalogError


def test_default_catalog_contents():
    catalog = default_catalog()

    assert catalog.kpi_types == [
        "subscribers", "stores", "arpu", "mau", "dau", "ggr", "employees",
    ]
    assert "ggr" in catalog
    assert catalog.get("ggr").industry_hint == "gaming"
    assert catalog.get("arpu").unit == "USD"
    assert catalog.get("stores").unit == "count"
    assert catalog.get("subscribers").category == "customer"
    assert catalog.get("nope") is None


def test_default_catalog_is_loaded_once():
    assert default_catalog() is default_catalog()


def test_every_template_declares_magnitude():
    for descriptor in default_catalog():
        assert descriptor.templates
        for template in descriptor.templates:
            assert "magnitude" in template.fields
            assert set(template.fields) <= {"magnitude", "unit"}


def test_template_without_magnitude_is_rejected():
    with pytest.raises(CatalogError):
        PatternCatalog.from_entries([
            {"type": "broken", "templates": [r"users:?\s*([\d,]+)"]},
        ])


def test_unknown_group_and_bad_regex_are_rejected():
    with pytest.raises(CatalogError):
        PatternCatalog.from_entries([
            {"type": "broken", "templates": [r"(?P<magnitude>\d+)\s*(?P<scale>m)"]},
        ])
    with pytest.raises(CatalogError):
        PatternCatalog.from_entries([
            {"type": "broken", "templates": [r"(?P<magnitude>\d+"]},
        ])


def test_duplicate_types_are_rejected():
    entry = {"type": "stores", "templates": [r"(?P<magnitude>\d+)\s+shops"]}
    with pytest.raises(CatalogError):
        PatternCatalog.from_entries([entry, entry])


def test_new_metric_is_added_by_data_only(tmp_path: Path):
    catalog_file = tmp_path / "extra.yaml"
    catalog_file.write_text(
        "kpis:\n"
        "  - type: vehicles_delivered\n"
        "    category: growth\n"
        "    templates:\n"
        "      - 'delivered\\s+(?P<magnitude>[\\d,]+)\\s+vehicles'\n"
        "    context_keywords: [delivered]\n",
        encoding="utf-8",
    )

    catalog = load_catalog(catalog_file)
    descriptor = catalog.get("vehicles_delivered")

    assert len(catalog) == 1
    assert descriptor.display_name == "Vehicles Delivered"
    assert descriptor.unit == "count"
    assert descriptor.category == "growth"


def test_missing_catalog_file(tmp_path: Path):
    with pytest.raises(CatalogError):
        load_catalog(tmp_path / "missing.yaml")
