import io

import pytest
from pypdf import PdfWriter

from app.file.service.file_reader import (
    EMPTY_PDF_PLACEHOLDER,
    OFFICE_PLACEHOLDER,
    ExtractionError,
    extract_pdf_text,
    is_allowed_mimetype,
    normalize_mimetype,
    read_file_content,
)


def blank_pdf() -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    buf = io.BytesIO()
    writer.write(buf)
    return buf.getvalue()


def test_allowed_mimetypes():
    assert is_allowed_mimetype("text/plain")
    assert is_allowed_mimetype("application/pdf")
    assert is_allowed_mimetype("text/x-python")
    assert not is_allowed_mimetype("image/png")
    assert not is_allowed_mimetype("application/zip")
    assert not is_allowed_mimetype(None)
    assert is_allowed_mimetype("application/json; charset=utf-8")


def test_normalize_mimetype_drops_parameters():
    assert normalize_mimetype("Application/JSON; charset=utf-8") == "application/json"
    assert normalize_mimetype("text/plain") == "text/plain"
    assert normalize_mimetype(None) == ""


def test_reads_utf8_text(tmp_path):
    path = tmp_path / "a.txt"
    path.write_text("héllo", encoding="utf-8")

    assert read_file_content(path, "text/plain") == "héllo"


def test_office_formats_get_placeholder(tmp_path):
    path = tmp_path / "a.docx"
    path.write_bytes(b"PK\x03\x04 not really a docx")

    mime = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    assert read_file_content(path, mime) == OFFICE_PLACEHOLDER
    assert read_file_content(path, "application/vnd.ms-excel") == OFFICE_PLACEHOLDER


def test_pdf_without_text_gets_placeholder():
    assert extract_pdf_text(blank_pdf()) == EMPTY_PDF_PLACEHOLDER


def test_invalid_pdf_raises(tmp_path):
    path = tmp_path / "broken.pdf"
    path.write_bytes(b"this is not a pdf")

    with pytest.raises(ExtractionError):
        read_file_content(path, "application/pdf")


def test_non_utf8_text_is_decoded_with_replacement(tmp_path):
    path = tmp_path / "legacy.csv"
    path.write_bytes("café,naïve\n".encode("cp1252"))

    content = read_file_content(path, "text/csv")

    assert content.startswith("caf\ufffd,na")
    assert content.endswith("ve\n")


def test_missing_file_raises(tmp_path):
    with pytest.raises(ExtractionError):
        read_file_content(tmp_path / "nope.txt", "text/plain")
