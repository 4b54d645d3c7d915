import logging
from datetime import datetime
from typing import Optional
from sqlmodel import Session, select
from .audit import append_event
from .errors import ConflictError, ForbiddenError, NotFoundError
from .models import Document, Signature

logger = logging.getLogger(__name__)


def _get_signature(session: Session, signature_id: int) -> Signature:
    signature = session.get(Signature, signature_id)
    if not signature:
        raise NotFoundError("Signature not found", {"signatureId": signature_id})
    return signature


def _require_pending(signature: Signature):
    if signature.status != "pending":
        raise ConflictError(f"Signature is already {signature.status}", {"status": signature.status})


def _cascade_document(session: Session, document_id: int, status: str):
    document = session.get(Document, document_id)
    if document:
        document.status = status
        document.updated_at = datetime.utcnow()
        session.add(document)


def accept(session: Session, signature_id: int, actor: str = "system") -> Signature:
    signature = _get_signature(session, signature_id)
    _require_pending(signature)
    signature.status = "signed"
    signature.signed_at = datetime.utcnow()
    session.add(signature)
    _cascade_document(session, signature.file_id, "signed")
    append_event(session, signature.file_id, actor, "accepted", {"signature_id": signature.id})
    session.commit()
    session.refresh(signature)
    logger.info("Signature %s accepted", signature.id)
    return signature


def reject(session: Session, signature_id: int, reason: Optional[str], actor: str = "system") -> Signature:
    signature = _get_signature(session, signature_id)
    _require_pending(signature)
    signature.status = "rejected"
    signature.reject_reason = reason
    session.add(signature)
    _cascade_document(session, signature.file_id, "rejected")
    append_event(session, signature.file_id, actor, "rejected", {"signature_id": signature.id, "reason": reason})
    session.commit()
    session.refresh(signature)
    logger.info("Signature %s rejected: %s", signature.id, reason)
    return signature


def remove(session: Session, signature_id: int, requester_id: str, ip: Optional[str] = None) -> None:
    signature = _get_signature(session, signature_id)
    if signature.signer_id != str(requester_id):
        raise ForbiddenError("Not authorized to delete this signature")
    # signed/rejected rows are audit history
    _require_pending(signature)
    document_id = signature.file_id
    session.delete(signature)
    append_event(session, document_id, f"signer:{requester_id}", "removed", {"signature_id": signature_id}, ip=ip)
    session.commit()
    logger.info("Signature %s removed by %s", signature_id, requester_id)


def clear_all(session: Session, document_id: int, requester_id: str, ip: Optional[str] = None) -> int:
    rows = session.exec(
        select(Signature).where(
            Signature.file_id == document_id,
            Signature.signer_id == str(requester_id),
            Signature.status == "pending",
        )
    ).all()
    ids = [row.id for row in rows]
    for row in rows:
        session.delete(row)
    if ids:
        append_event(
            session, document_id, f"signer:{requester_id}", "cleared",
            {"signature_ids": ids}, ip=ip,
        )
    session.commit()
    logger.info("Cleared %d signatures by %s on document %s", len(rows), requester_id, document_id)
    return len(rows)
