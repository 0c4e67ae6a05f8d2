import io
import json

import pytest
from PyPDF2 import PdfWriter

from docchat.errors import IngestError
from docchat.ingest.extractors import (
    PDFExtractor,
    TextExtractor,
    extract_document,
    load_manifest,
    normalize_text,
)


def _blank_pdf(pages: int) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=200, height=200)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def test_normalize_text_collapses_spaces_but_keeps_line_breaks() -> None:
    raw = "제1조\t\t목적  \r\n\r\n\r\n\r\n제2조   정의 "

    assert normalize_text(raw) == "제1조 목적\n\n제2조 정의"


def test_text_extractor_falls_back_to_latin1() -> None:
    extracted = TextExtractor().extract("café".encode("latin-1"))

    assert extracted.text == "café"
    assert extracted.total_pages == 0


def test_pdf_extractor_reports_page_count() -> None:
    extracted = PDFExtractor().extract(_blank_pdf(3))

    assert extracted.total_pages == 3
    assert extracted.text == ""


def test_pdf_extractor_wraps_parse_errors() -> None:
    with pytest.raises(IngestError):
        PDFExtractor().extract(b"this is not a pdf")


def test_extract_document_dispatches_on_suffix(tmp_path) -> None:
    text_file = tmp_path / "guide.txt"
    text_file.write_text("First line\nSecond line", encoding="utf-8")
    pdf_file = tmp_path / "law.pdf"
    pdf_file.write_bytes(_blank_pdf(2))

    assert extract_document(text_file).text == "First line\nSecond line"
    assert extract_document(pdf_file).total_pages == 2


def test_extract_document_rejects_missing_and_unsupported_files(tmp_path) -> None:
    unsupported = tmp_path / "sheet.xlsx"
    unsupported.write_bytes(b"data")

    with pytest.raises(IngestError) as missing:
        extract_document(tmp_path / "absent.pdf")
    assert missing.value.filename == "absent.pdf"

    with pytest.raises(IngestError):
        extract_document(unsupported)


def test_load_manifest_preserves_listed_order(tmp_path) -> None:
    (tmp_path / "manifest.json").write_text(json.dumps(["b.pdf", "a.txt"]), encoding="utf-8")

    assert load_manifest(tmp_path) == [tmp_path / "b.pdf", tmp_path / "a.txt"]


def test_load_manifest_falls_back_to_sorted_supported_files(tmp_path) -> None:
    for name in ("b.txt", "a.pdf", "notes.md"):
        (tmp_path / name).write_text("x", encoding="utf-8")

    assert load_manifest(tmp_path) == [tmp_path / "a.pdf", tmp_path / "b.txt"]


def test_load_manifest_rejects_invalid_manifest_and_missing_directory(tmp_path) -> None:
    (tmp_path / "manifest.json").write_text(json.dumps({"files": []}), encoding="utf-8")

    with pytest.raises(ValueError):
        load_manifest(tmp_path)
    with pytest.raises(FileNotFoundError):
        load_manifest(tmp_path / "missing")
