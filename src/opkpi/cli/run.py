# src/opkpi/cli/run.py

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from opkpi.config import setup_logging
from opkpi.pipeline.pipeline import KPIExtractionPipeline
from opkpi.utils.text_reader import read_document_text

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Extract operational KPIs from an earnings release, transcript or filing."
    )
    parser.add_argument("input", help="Path to the document (.txt or .pdf).")
    parser.add_argument("--symbol", "-s", required=True, help="Ticker symbol.")
    parser.add_argument(
        "--document-type",
        default="earnings-release",
        help="10-K, 10-Q, 8-K, earnings-release, investor-presentation, transcript, other.",
    )
    parser.add_argument("--report-date", default="", help="ISO report date, e.g. 2024-10-17.")
    parser.add_argument("--fiscal-period", default="quarterly", help="Fiscal period tag.")
    parser.add_argument("--fiscal-year", type=int, help="Fiscal year (default: year of report date).")
    parser.add_argument(
        "--output",
        "-o",
        help="Path to output JSON file (default: print to stdout).",
    )
    parser.add_argument("--log-level", default="INFO")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    path = Path(args.input)
    logger.info("CLI: reading '%s'", path)
    text = read_document_text(str(path))

    metadata: Dict[str, Any] = {
        "symbol": args.symbol,
        "documentType": args.document_type,
        "reportDate": args.report_date,
        "fiscalPeriod": args.fiscal_period,
        "fiscalYear": args.fiscal_year,
        "fileName": path.name,
    }

    result = KPIExtractionPipeline().run(text, metadata)
    data = result.to_dict()

    if args.output:
        out_file = Path(args.output)
        out_file.parent.mkdir(parents=True, exist_ok=True)
        out_file.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info("CLI: saved results to %s", out_file)
    else:
        print(json.dumps(data, indent=2, ensure_ascii=False))

    if not result.success:
        logger.error("CLI: extraction failed: %s", "; ".join(result.errors or []))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
