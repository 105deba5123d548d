"""Plain-text extraction for uploaded foundation documents."""

from __future__ import annotations

import logging
import re
from pathlib import Path

import fitz  # PyMuPDF

from .utils import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 10
TEXT_SUFFIXES = {".txt", ".md", ".markdown"}


class DocumentError(ValueError):
    """Raised with a user-facing message when no usable text can be extracted."""


def _pdf_text(data: bytes) -> str:
    doc = fitz.open(stream=data, filetype="pdf")
    try:
        return "\n".join(page.get_text("text") for page in doc)
    finally:
        doc.close()


def _clean(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return re.sub(r"\n{3,}", "\n\n", text).strip()


def extract_text(filename: str, data: bytes) -> str:
    suffix = Path(filename).suffix.lower()
    if suffix == ".pdf":
        try:
            text = _pdf_text(data)
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to open %s: %s", filename, exc)
            raise DocumentError(
                "Failed to parse file. Please try a different format or paste text directly."
            ) from exc
    elif suffix in TEXT_SUFFIXES or not suffix:
        text = data.decode("utf-8", errors="replace")
    else:
        raise DocumentError(f"{suffix} files are not supported. Please upload .txt, .md or .pdf, or paste the text.")

    text = _clean(text)
    if len(text) < MIN_TEXT_LENGTH:
        raise DocumentError("Could not extract text from file. Please try pasting the text directly.")
    logger.info("Extracted %d characters from %s", len(text), filename)
    return text
