"""PDF-to-text adapter used by report ingestion."""
from __future__ import annotations

import io
from typing import List

from pypdf import PdfReader

from healthtrack.utils.exceptions import UnreadableDocument


def _page_fragments(reader: PdfReader, index: int) -> List[str]:
    text = reader.pages[index].extract_text() or ""
    return text.split()


def extract_pdf_text(data: bytes) -> str:
    """Return the document text, one line per page in page order.

    Fragments within a page are joined by single spaces, so labels and values
    split across layout runs end up on the same line.
    """
    if not data:
        raise UnreadableDocument("Uploaded document is empty")
    try:
        reader = PdfReader(io.BytesIO(data))
        page_count = len(reader.pages)
        pages = [" ".join(_page_fragments(reader, i)) for i in range(page_count)]
    except Exception as exc:
        raise UnreadableDocument(f"Could not read PDF: {exc}") from exc
    if page_count == 0:
        raise UnreadableDocument("PDF has no pages")
    return "".join(page + "\n" for page in pages)


__all__ = ["extract_pdf_text"]
