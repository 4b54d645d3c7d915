# Finalization: draw every accepted and pending signature into a fresh copy of
# the original PDF using pypdf + reportlab, store it, then flip the state.

import logging
import time
import uuid
from collections import defaultdict
from dataclasses import dataclass, asdict, field
from datetime import datetime
from io import BytesIO
from typing import Dict, List, Optional, Tuple

from minio.error import S3Error
from pypdf import PdfReader, PdfWriter
from reportlab.lib.colors import black
from reportlab.pdfgen import canvas
from sqlmodel import Session, select

from . import storage
from .audit import append_event
from .config import SIGNATURE_FONT_SIZE, SIGNED_PREFIX
from .coords import PdfPoint, browser_to_pdf, project
from .errors import NotFoundError, SigningError, StorageError
from .fonts import FontAsset, FontRegistry
from .models import Document, Signature
from .pdfpages import load_pdf_bytes, open_pdf
from .utils import sha256_bytes

logger = logging.getLogger(__name__)

ELIGIBLE_STATUSES = ("pending", "signed")


@dataclass
class FinalizationResult:
    signed_file: str
    sha256: str
    applied: List[int] = field(default_factory=list)
    skipped: List[dict] = field(default_factory=list)
    fonts: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def signature_point(sig: Signature, page_width: float, page_height: float) -> PdfPoint:
    """Re-derive the PDF anchor for a stored signature against the current page.

    The raw snapshot (click + rendered size) is the source of truth; cached
    scale factors are only used for rows that lack a rendered height.
    """
    if sig.rendered_page_height:
        return browser_to_pdf(
            page_width, page_height, sig.rendered_page_height, sig.rendered_page_width,
            sig.x_coordinate, sig.y_coordinate,
        )
    width_scale = sig.width_scale or 1.0
    height_scale = sig.height_scale or 1.0
    return project(page_width, page_height, sig.x_coordinate, sig.y_coordinate, width_scale, height_scale)


def _draw_overlay(page_sizes: Dict[int, Tuple[float, float]], ops: Dict[int, list]) -> PdfReader:
    """Render all signature text into one PDF, one overlay page per target page.

    Using a single canvas embeds each font once for the whole run.
    """
    buf = BytesIO()
    c = canvas.Canvas(buf)
    for pidx in sorted(ops):
        c.setPageSize(page_sizes[pidx])
        c.setFillColor(black)
        for asset, text, x, y in ops[pidx]:
            c.setFont(asset.font_name, SIGNATURE_FONT_SIZE)
            c.drawString(x, y, text)
        c.showPage()
    c.save()
    buf.seek(0)
    return PdfReader(buf)


def render_signed_pdf(reader: PdfReader, signatures: List[Signature], fonts: FontRegistry) -> Tuple[bytes, FinalizationResult]:
    writer = PdfWriter()
    for page in reader.pages:
        writer.add_page(page)

    result = FinalizationResult(signed_file="", sha256="")
    page_sizes: Dict[int, Tuple[float, float]] = {}
    ops: Dict[int, list] = defaultdict(list)
    embedded: Dict[str, FontAsset] = {}
    page_count = len(reader.pages)

    for sig in signatures:
        pidx = sig.page_number - 1
        if pidx < 0 or pidx >= page_count:
            logger.warning("Skipping signature %s: page %s not in document (%d pages)", sig.id, sig.page_number, page_count)
            result.skipped.append({"id": sig.id, "reason": "page_missing"})
            continue
        box = reader.pages[pidx].mediabox
        width, height = float(box.width), float(box.height)
        try:
            point = signature_point(sig, width, height)
        except SigningError as exc:
            logger.warning("Skipping signature %s: %s", sig.id, exc.message)
            result.skipped.append({"id": sig.id, "reason": exc.kind})
            continue
        asset = fonts.resolve(sig.font)
        if asset.font_name not in embedded:
            logger.debug("Embedding font %s (%s)", asset.font_name, asset.label)
            embedded[asset.font_name] = asset
        baseline = point.pdf_y - asset.ascent(SIGNATURE_FONT_SIZE)
        logger.debug(
            "Applying signature %s page=%s browser=(%s, %s) pdf=(%.2f, %.2f) scales=(%.4f, %.4f)",
            sig.id, sig.page_number, sig.x_coordinate, sig.y_coordinate,
            point.pdf_x, point.pdf_y, point.width_scale, point.height_scale,
        )
        page_sizes[pidx] = (width, height)
        ops[pidx].append((asset, sig.signature, point.pdf_x, baseline))
        result.applied.append(sig.id)

    if ops:
        overlay = _draw_overlay(page_sizes, ops)
        for overlay_page, pidx in zip(overlay.pages, sorted(ops)):
            writer.pages[pidx].merge_page(overlay_page)

    out = BytesIO()
    writer.write(out)
    result.fonts = sorted(a.label for a in embedded.values())
    return out.getvalue(), result


def _artifact_key() -> str:
    # the random suffix keeps two runs in the same millisecond apart
    stamp = int(time.time() * 1000)
    key = f"{SIGNED_PREFIX}/signed-{stamp}-{uuid.uuid4().hex[:8]}.pdf"
    while storage.object_exists(key):
        key = f"{SIGNED_PREFIX}/signed-{stamp}-{uuid.uuid4().hex[:8]}.pdf"
    return key


def finalize(session: Session, document_id: int, fonts: FontRegistry, actor: Optional[str] = None) -> FinalizationResult:
    document = session.get(Document, document_id)
    if not document:
        raise NotFoundError("Document not found", {"fileId": document_id})
    signatures = session.exec(
        select(Signature).where(Signature.file_id == document_id, Signature.status.in_(ELIGIBLE_STATUSES))
    ).all()
    rendered_pending = [sig.id for sig in signatures if sig.status == "pending"]

    # always the pristine original, never a previous signed artifact
    reader = open_pdf(load_pdf_bytes(document.filepath))
    pdf_bytes, result = render_signed_pdf(reader, signatures, fonts)

    try:
        key = _artifact_key()
        storage.put_bytes(key, pdf_bytes, content_type="application/pdf")
    except (S3Error, OSError) as exc:
        session.rollback()
        raise StorageError(f"Failed to store signed PDF: {exc}") from exc
    result.signed_file = key
    result.sha256 = sha256_bytes(pdf_bytes)

    # artifact is durable; commit all state in one transaction
    document = session.exec(select(Document).where(Document.id == document_id).with_for_update()).one()
    now = datetime.utcnow()
    # only rows that were drawn into this artifact; later placements stay pending
    pending = session.exec(
        select(Signature).where(Signature.id.in_(rendered_pending), Signature.status == "pending")
    ).all() if rendered_pending else []
    for sig in pending:
        sig.status = "signed"
        sig.signed_at = now
        session.add(sig)
    document.status = "signed"
    document.signed_file = key
    document.sha256_signed = result.sha256
    document.updated_at = now
    session.add(document)
    append_event(
        session, document_id, actor or "system", "finalized",
        {"signed_file": key, "sha256": result.sha256, "applied": result.applied, "skipped": result.skipped},
    )
    session.commit()
    logger.info(
        "Finalized document %s -> %s (%d applied, %d skipped)",
        document_id, key, len(result.applied), len(result.skipped),
    )
    return result
