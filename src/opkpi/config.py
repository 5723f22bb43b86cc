# src/opkpi/config.py
from __future__ import annotations

from pathlib import Path
from dotenv import load_dotenv
import json
import yaml
import logging
import os

# Load .env as early as possible
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent
SCHEMA_DIR = BASE_DIR / "schemas"
DEFAULT_CATALOG_PATH = SCHEMA_DIR / "kpi_patterns.yaml"

DEFAULT_DEDUP_TOLERANCE = 0.01


def load_json(path: Path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_yaml(path: Path):
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


class EngineConfig:
    """
    Environment-driven settings:
      OPKPI_CATALOG_PATH     alternative YAML pattern catalog
      OPKPI_DEDUP_TOLERANCE  relative tolerance used by the deduplicator
      OPKPI_LOG_LEVEL        root log level
    """

    def __init__(self):
        self.catalog_path = Path(os.getenv("OPKPI_CATALOG_PATH") or DEFAULT_CATALOG_PATH)
        self.log_level = os.getenv("OPKPI_LOG_LEVEL", "INFO")

        raw_tol = os.getenv("OPKPI_DEDUP_TOLERANCE")
        try:
            self.dedup_tolerance = float(raw_tol) if raw_tol else DEFAULT_DEDUP_TOLERANCE
        except ValueError:
            logging.getLogger(__name__).warning(
                "config: invalid OPKPI_DEDUP_TOLERANCE=%r, using %s",
                raw_tol, DEFAULT_DEDUP_TOLERANCE,
            )
            self.dedup_tolerance = DEFAULT_DEDUP_TOLERANCE


def load_config():
    return EngineConfig()


def setup_logging(level: str = "INFO") -> None:
    """
    Configure root logger. Safe to call multiple times.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


# Run once automatically
setup_logging(load_config().log_level)
