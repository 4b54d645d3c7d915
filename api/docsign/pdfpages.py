from io import BytesIO
from typing import Tuple

from minio.error import S3Error
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from . import storage
from .errors import StorageError, ValidationError


def load_pdf_bytes(key: str) -> bytes:
    try:
        return storage.get_bytes(key)
    except (S3Error, OSError) as exc:
        raise StorageError(f"PDF could not be loaded: {exc}", {"filepath": key}) from exc


def open_pdf(pdf_bytes: bytes) -> PdfReader:
    try:
        return PdfReader(BytesIO(pdf_bytes))
    except PdfReadError as exc:
        raise StorageError(f"PDF is unreadable: {exc}") from exc


def page_size(reader: PdfReader, page_number: int) -> Tuple[float, float]:
    """Width and height in points of a 1-indexed page."""
    page_count = len(reader.pages)
    if page_number < 1 or page_number > page_count:
        raise ValidationError("Invalid page number", {"page_count": page_count, "pageNumber": page_number})
    box = reader.pages[page_number - 1].mediabox
    return float(box.width), float(box.height)
