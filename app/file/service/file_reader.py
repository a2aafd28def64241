# app/file/service/file_reader.py
import io
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from app.core.logger import get_logger

logger = get_logger("FileReader")

ALLOWED_MIME_TYPES = {
    "text/plain",
    "text/csv",
    "application/json",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/html",
    "text/xml",
    "application/xml",
    "text/markdown",
}

OFFICE_PLACEHOLDER = "[Office document content - Office document parsing not implemented yet]"
EMPTY_PDF_PLACEHOLDER = "[PDF file contains no readable text content]"


class ExtractionError(Exception):
    """The upload could not be turned into text."""


def normalize_mimetype(content_type: str | None) -> str:
    """Bare lowercase media type, without parameters such as charset."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def is_allowed_mimetype(mimetype: str | None) -> bool:
    mimetype = normalize_mimetype(mimetype)
    if not mimetype:
        return False
    return mimetype in ALLOWED_MIME_TYPES or mimetype.startswith("text/")


def _is_office(mimetype: str) -> bool:
    return "word" in mimetype or "excel" in mimetype or "spreadsheetml" in mimetype


def extract_pdf_text(data: bytes) -> str:
    if not data:
        raise ExtractionError("PDF file is empty")
    try:
        reader = PdfReader(io.BytesIO(data))
        if reader.is_encrypted:
            raise ExtractionError("PDF file is encrypted or password-protected. Please upload an unprotected PDF.")
        text = "\n".join((page.extract_text() or "") for page in reader.pages)
    except ExtractionError:
        raise
    except PdfReadError as e:
        raise ExtractionError(f"Invalid PDF file format. Please ensure the file is a valid PDF. ({e})") from e
    except Exception as e:
        raise ExtractionError(f"Failed to parse PDF: {e}") from e

    if not text.strip():
        return EMPTY_PDF_PLACEHOLDER
    return text


def read_file_content(path: Path, mimetype: str) -> str:
    """
    Extract text from a stored upload.
    Office formats degrade to a placeholder string; unreadable input raises ExtractionError.
    """
    if not path.exists():
        raise ExtractionError(f"File does not exist: {path.name}")

    if mimetype == "application/pdf":
        logger.debug(f"Reading {path.name} as PDF")
        return extract_pdf_text(path.read_bytes())

    if _is_office(mimetype):
        logger.debug(f"Office document detected ({mimetype}), storing placeholder")
        return OFFICE_PLACEHOLDER

    # text/*, JSON and anything else accepted is read as UTF-8; undecodable bytes become U+FFFD
    return path.read_bytes().decode("utf-8", errors="replace")
