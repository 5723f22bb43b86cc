# tests/test_config.py
from opkpi.config import DEFAULT_CATALOG_PATH, DEFAULT_DEDUP_TOLERANCE, load_config


def test_defaults(monkeypatch):
    monkeypatch.delenv("OPKPI_LOG_LEVEL", raising=False)
    monkeypatch.delenv("OPKPI_CATALOG_PATH", raising=False)
    monkeypatch.delenv("OPKPI_DEDUP_TOLERANCE", raising=False)

    cfg = load_config()

    assert cfg.log_level == "INFO"
    assert cfg.catalog_path == DEFAULT_CATALOG_PATH
    assert cfg.dedup_tolerance == DEFAULT_DEDUP_TOLERANCE


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("OPKPI_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("OPKPI_DEDUP_TOLERANCE", "0.05")

    cfg = load_config()

    assert cfg.log_level == "DEBUG"
    assert cfg.dedup_tolerance == 0.05


def test_invalid_tolerance_falls_back(monkeypatch):
    monkeypatch.setenv("OPKPI_DEDUP_TOLERANCE", "lots")

    assert load_config().dedup_tolerance == DEFAULT_DEDUP_TOLERANCE
