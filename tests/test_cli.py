# tests/test_cli.py
import json
from pathlib import Path

import pytest

from opkpi.cli.run import main
from opkpi.utils.text_reader import read_document_text

SAMPLE = Path(__file__).resolve().parents[1] / "data" / "samples" / "earnings_release.txt"


def test_cli_writes_json(tmp_path: Path):
    out = tmp_path / "out" / "kpis.json"

    code = main([
        str(SAMPLE),
        "--symbol", "strm",
        "--report-date", "2024-10-17",
        "--fiscal-period", "Q3",
        "--output", str(out),
    ])

    assert code == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["success"] is True
    assert data["document"]["fiscalYear"] == 2024
    assert data["document"]["fileName"] == SAMPLE.name
    assert {k["kpiType"] for k in data["extractedKPIs"]} == {
        "subscribers", "stores", "arpu", "mau", "employees",
    }


def test_cli_reports_failure(tmp_path: Path):
    out = tmp_path / "kpis.json"

    # no fiscal year and no report date to derive it from
    code = main([str(SAMPLE), "--symbol", "strm", "--output", str(out)])

    assert code == 1
    assert json.loads(out.read_text(encoding="utf-8"))["success"] is False


def test_reader_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        read_document_text(str(tmp_path / "missing.txt"))
