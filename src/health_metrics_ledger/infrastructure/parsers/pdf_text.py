"""PDF text extraction using PyMuPDF."""

import logging

import fitz  # PyMuPDF

logger = logging.getLogger(__name__)


def extract_pdf_text(content: bytes) -> str:
    """
    Extract the words of a PDF as a single whitespace-joined string.

    Args:
        content: Raw PDF bytes.

    Returns:
        Text of all pages, words separated by single spaces.
    """
    words: list[str] = []
    with fitz.open(stream=content, filetype="pdf") as doc:
        for page in doc:
            text = page.get_text("text") or ""
            words.extend(text.split())
        logger.debug(f"Extracted {len(words)} words from {doc.page_count} pages")
    return " ".join(words)
