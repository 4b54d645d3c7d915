"""
Placing a signature on a document page.

A placement stores both what the client saw (click position and the size of
the rendered page) and the PDF page size at that moment, so the same mapping
can be replayed when the document is finalized.
"""

import logging
import math
from dataclasses import dataclass, asdict
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select, delete

from .audit import append_event
from .coords import browser_to_pdf
from .errors import NotFoundError, ValidationError
from .models import Document, Signature
from .pdfpages import load_pdf_bytes, open_pdf, page_size

logger = logging.getLogger(__name__)


@dataclass
class PlacementResult:
    signature_id: int
    superseded: int
    pdf_coordinates: dict
    browser_coordinates: dict
    page_dimensions: dict
    scale_factors: dict

    def to_dict(self) -> dict:
        return asdict(self)


def _number(name: str, value) -> float:
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{name} is required", {"field": name})
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid numeric values", {"field": name, "value": value})
    if not math.isfinite(number):
        raise ValidationError("Invalid numeric values", {"field": name, "value": value})
    return number


def _page_number(value) -> int:
    number = _number("pageNumber", value)
    if not number.is_integer():
        raise ValidationError("pageNumber must be an integer", {"field": "pageNumber", "value": value})
    return int(number)


def _supersede(session: Session, signature: Signature) -> int:
    stale = session.exec(
        delete(Signature).where(
            Signature.file_id == signature.file_id,
            Signature.signer_id == signature.signer_id,
            Signature.status == "pending",
        )
    )
    session.add(signature)
    session.flush()
    return stale.rowcount or 0


def place(
    session: Session,
    document_id: int,
    signer_id: str,
    page_number,
    x,
    y,
    text: str,
    font_label: Optional[str],
    rendered_height,
    rendered_width=None,
    ip_address: Optional[str] = None,
) -> PlacementResult:
    if document_id is None:
        raise ValidationError("fileId is required", {"field": "fileId"})
    if not signer_id:
        raise ValidationError("signer is required", {"field": "signer"})
    if not text or not str(text).strip():
        raise ValidationError("signature is required", {"field": "signature"})
    page_number = _page_number(page_number)
    x = _number("xCoordinate", x)
    y = _number("yCoordinate", y)
    rendered_height = _number("renderedPageHeight", rendered_height)
    if rendered_width is not None:
        rendered_width = _number("renderedPageWidth", rendered_width)

    document = session.get(Document, document_id)
    if not document:
        raise NotFoundError("Document not found", {"fileId": document_id})

    reader = open_pdf(load_pdf_bytes(document.filepath))
    pdf_width, pdf_height = page_size(reader, page_number)
    point = browser_to_pdf(pdf_width, pdf_height, rendered_height, rendered_width, x, y)

    def build() -> Signature:
        return Signature(
            file_id=document.id,
            signer_id=str(signer_id),
            page_number=page_number,
            x_coordinate=x,
            y_coordinate=y,
            signature=str(text),
            font=font_label,
            pdf_page_height=pdf_height,
            pdf_page_width=pdf_width,
            rendered_page_height=rendered_height,
            rendered_page_width=rendered_width,
            pdf_x=point.pdf_x,
            pdf_y=point.pdf_y,
            width_scale=point.width_scale,
            height_scale=point.height_scale,
            ip_address=ip_address,
            status="pending",
        )

    signature = build()
    try:
        superseded = _supersede(session, signature)
    except IntegrityError:
        # a concurrent placement by the same signer won the insert
        session.rollback()
        signature = build()
        superseded = _supersede(session, signature)
    append_event(
        session, document.id, f"signer:{signer_id}", "placed",
        {"signature_id": signature.id, "page": page_number, "pdf_x": point.pdf_x, "pdf_y": point.pdf_y},
        ip=ip_address,
    )
    session.commit()
    session.refresh(signature)
    logger.info(
        "Placed signature %s on document %s page %s at (%.2f, %.2f), superseded %d",
        signature.id, document.id, page_number, point.pdf_x, point.pdf_y, superseded,
    )
    return PlacementResult(
        signature_id=signature.id,
        superseded=superseded,
        pdf_coordinates={"x": point.pdf_x, "y": point.pdf_y},
        browser_coordinates={"x": x, "y": y},
        page_dimensions={
            "pdf": {"width": pdf_width, "height": pdf_height},
            "rendered": {"width": rendered_width, "height": rendered_height},
        },
        scale_factors={"width": point.width_scale, "height": point.height_scale},
    )
