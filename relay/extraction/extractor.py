"""Plain-text extraction for uploaded documents.

Dispatch is by the declared mime type only; the file name is never consulted.
Every successful branch goes through the same post-processing: the text is
cut to ``MAX_EXTRACTED_CHARS`` and an empty result is replaced with
``EMPTY_TEXT_PLACEHOLDER``.

PDF parse failures are not errors here. They come back as fallback text with
the failure attached to ``Extraction.warning`` so the caller can log it. Word
and spreadsheet parser errors propagate.
"""

from __future__ import annotations

import io
from enum import Enum
from typing import Callable, Dict, Iterable, Optional

from docx import Document
from openpyxl import load_workbook
from pydantic import BaseModel
from pypdf import PdfReader

from relay.errors import UnsupportedMediaTypeError


MAX_EXTRACTED_CHARS = 4000
EMPTY_TEXT_PLACEHOLDER = "No readable text."
PDF_FALLBACK_TEXT = "Could not read the PDF contents. The file may be encrypted or corrupted."
CELL_SEPARATOR = " | "

PDF_MIME = "application/pdf"
WORD_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
SPREADSHEET_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class ExtractionStrategy(str, Enum):
    PDF = "pdf"
    WORD = "word"
    TEXT = "text"
    SPREADSHEET = "spreadsheet"
    UNSUPPORTED = "unsupported"

    @classmethod
    def for_mime_type(cls, mime_type: Optional[str]) -> "ExtractionStrategy":
        normalized = (mime_type or "").split(";", 1)[0].strip().lower()
        if normalized == PDF_MIME:
            return cls.PDF
        if normalized == WORD_MIME:
            return cls.WORD
        if normalized.startswith("text/"):
            return cls.TEXT
        if normalized == SPREADSHEET_MIME:
            return cls.SPREADSHEET
        return cls.UNSUPPORTED


class Extraction(BaseModel):
    text: str
    strategy: ExtractionStrategy
    warning: Optional[str] = None


def _read_pdf(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    return "\n".join((page.extract_text() or "") for page in reader.pages)


def _read_word(data: bytes) -> str:
    document = Document(io.BytesIO(data))
    lines = [paragraph.text for paragraph in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            lines.extend(cell.text for cell in row.cells)
    return "\n".join(lines)


def _read_text(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def _format_row(row: Iterable[object]) -> Optional[str]:
    values = list(row)
    while values and values[-1] is None:
        values.pop()
    cells = ["" if value is None else str(value) for value in values]
    if not any(cells):
        return None
    return CELL_SEPARATOR.join(cells)


def _read_spreadsheet(data: bytes) -> str:
    workbook = load_workbook(io.BytesIO(data), data_only=True)
    try:
        # Only the first sheet is read.
        sheet = workbook.worksheets[0]
        lines = []
        for row in sheet.iter_rows(min_col=sheet.min_column, values_only=True):
            line = _format_row(row)
            if line is not None:
                lines.append(line)
        return "\n".join(lines)
    finally:
        workbook.close()


_READERS: Dict[ExtractionStrategy, Callable[[bytes], str]] = {
    ExtractionStrategy.WORD: _read_word,
    ExtractionStrategy.TEXT: _read_text,
    ExtractionStrategy.SPREADSHEET: _read_spreadsheet,
}


def finalize_text(text: str) -> str:
    return text[:MAX_EXTRACTED_CHARS] or EMPTY_TEXT_PLACEHOLDER


def extract(mime_type: Optional[str], data: bytes) -> Extraction:
    """Extract plain text from ``data`` according to its declared mime type.

    Raises:
        UnsupportedMediaTypeError: the mime type maps to no strategy.
    """
    strategy = ExtractionStrategy.for_mime_type(mime_type)
    if strategy is ExtractionStrategy.UNSUPPORTED:
        raise UnsupportedMediaTypeError()

    warning: Optional[str] = None
    if strategy is ExtractionStrategy.PDF:
        try:
            text = _read_pdf(data)
        except Exception as exc:
            warning = f"PDF parsing failed: {exc}"
            text = PDF_FALLBACK_TEXT
    else:
        text = _READERS[strategy](data)

    return Extraction(text=finalize_text(text), strategy=strategy, warning=warning)
