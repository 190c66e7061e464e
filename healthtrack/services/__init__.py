# Expose the extraction modules so tests can monkeypatch them by attribute.

from . import pdf_text as pdf_text  # noqa: F401
from . import report_parsers as report_parsers  # noqa: F401

__all__ = [
    "pdf_text",
    "report_parsers",
]
