"""Text extraction for corpus source files."""
from __future__ import annotations

import io
import json
import logging
import re
import unicodedata
from dataclasses import dataclass
from pathlib import Path
from typing import List

from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

from ..errors import IngestError

LOGGER = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".pdf", ".txt")
MANIFEST_NAME = "manifest.json"

_WHITESPACE_RE = re.compile(r"[ \t\f\v]+")
_TRAILING_SPACE_RE = re.compile(r" +\n")
_MULTIPLE_NEWLINES_RE = re.compile(r"\n{3,}")


@dataclass(slots=True)
class ExtractedText:
    """Full document text with its authoritative page count (0 when unknown)."""

    text: str
    total_pages: int = 0


def normalize_text(text: str) -> str:
    """Normalise Unicode and collapse horizontal whitespace, keeping line breaks."""

    normalized = unicodedata.normalize("NFC", text)
    normalized = normalized.replace("\r\n", "\n").replace("\r", "\n")
    normalized = _WHITESPACE_RE.sub(" ", normalized)
    normalized = _TRAILING_SPACE_RE.sub("\n", normalized)
    normalized = _MULTIPLE_NEWLINES_RE.sub("\n\n", normalized)
    return normalized.strip()


class PDFExtractor:
    """Extract page text from PDF documents with PyPDF2."""

    def extract(self, data: bytes) -> ExtractedText:
        try:
            reader = PdfReader(io.BytesIO(data))
        except (PdfReadError, ValueError, OSError) as error:
            raise IngestError("Unable to parse PDF document", cause=error) from error

        pages: List[str] = []
        for index, page in enumerate(reader.pages, start=1):
            try:
                pages.append(page.extract_text() or "")
            except Exception as error:  # pragma: no cover - depends on PDF content
                LOGGER.warning("Failed to extract text from PDF page %s: %s", index, error)
                pages.append("")
        return ExtractedText(text=normalize_text("\n".join(pages)), total_pages=len(pages))


class TextExtractor:
    """Decode plaintext documents, falling back to latin-1."""

    def extract(self, data: bytes, encoding: str = "utf-8") -> ExtractedText:
        try:
            text = data.decode(encoding)
        except UnicodeDecodeError:
            LOGGER.debug("Falling back to latin-1 decoding")
            text = data.decode("latin-1")
        return ExtractedText(text=normalize_text(text), total_pages=0)


def extract_document(path: Path | str) -> ExtractedText:
    """Extract the text of a corpus file based on its suffix."""

    path = Path(path)
    if not path.exists():
        raise IngestError(f"Source file not found: {path}", filename=path.name)
    suffix = path.suffix.lower()
    data = path.read_bytes()
    if suffix == ".pdf":
        return PDFExtractor().extract(data)
    if suffix == ".txt":
        return TextExtractor().extract(data)
    raise IngestError(f"Unsupported document format: {suffix or path.name}", filename=path.name)


def load_manifest(corpus_dir: Path | str) -> list[Path]:
    """Return the corpus files in ingestion order.

    ``manifest.json`` (a JSON list of file names) defines the order when present;
    otherwise every supported file in the directory is taken in sorted order.
    """

    corpus_dir = Path(corpus_dir)
    manifest_path = corpus_dir / MANIFEST_NAME
    if manifest_path.exists():
        entries = json.loads(manifest_path.read_text(encoding="utf-8"))
        if not isinstance(entries, list):
            raise ValueError(f"{manifest_path} must contain a JSON list of file names")
        return [corpus_dir / str(entry) for entry in entries]
    if not corpus_dir.is_dir():
        raise FileNotFoundError(f"Corpus directory not found: {corpus_dir}")
    return sorted(
        path for path in corpus_dir.iterdir() if path.is_file() and path.suffix.lower() in SUPPORTED_SUFFIXES
    )


__all__ = [
    "ExtractedText",
    "MANIFEST_NAME",
    "PDFExtractor",
    "SUPPORTED_SUFFIXES",
    "TextExtractor",
    "extract_document",
    "load_manifest",
    "normalize_text",
]
