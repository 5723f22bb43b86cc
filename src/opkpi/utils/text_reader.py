from __future__ import annotations

import logging
from pathlib import Path
import pdfplumber

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = {".txt", ".text", ".md"}


def extract_pdf_text(pdf_path: str) -> str:
    """
    Text of all PDF pages, one page after another.
    Line breaks are kept so section/table segmentation still has lines to work on.
    """
    pages = []
    with pdfplumber.open(pdf_path) as pdf:
        for i, page in enumerate(pdf.pages, start=1):
            try:
                text = page.extract_text() or ""
            except Exception as exc:
                logger.warning("Failed to extract page %s: %s", i, exc)
                text = ""
            pages.append(text)

    return "\n\n".join(pages)


def read_document_text(path: str) -> str:
    """
    Ingestion adapter used by the CLI: plain-text files are read as-is,
    PDFs go through pdfplumber. Raises FileNotFoundError for a missing file.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(path)

    if p.suffix.lower() == ".pdf":
        logger.info("Reading PDF %s", p)
        return extract_pdf_text(str(p))

    if p.suffix.lower() not in TEXT_SUFFIXES:
        logger.warning("Unknown extension %s, reading %s as text", p.suffix, p)

    return p.read_text(encoding="utf-8")
