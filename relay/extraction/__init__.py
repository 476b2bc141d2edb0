from relay.extraction.extractor import (
    CELL_SEPARATOR,
    EMPTY_TEXT_PLACEHOLDER,
    MAX_EXTRACTED_CHARS,
    PDF_FALLBACK_TEXT,
    Extraction,
    ExtractionStrategy,
    extract,
)

__all__ = [
    "CELL_SEPARATOR",
    "EMPTY_TEXT_PLACEHOLDER",
    "MAX_EXTRACTED_CHARS",
    "PDF_FALLBACK_TEXT",
    "Extraction",
    "ExtractionStrategy",
    "extract",
]
