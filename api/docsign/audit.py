from typing import List, Optional
from sqlmodel import Session, select
from .models import Signature, SignatureEvent
from .utils import canonical_json, sha256_bytes

GENESIS_HASH = "0" * 64

def append_event(session: Session, document_id: int, actor: str, type_: str, meta: dict, ip: Optional[str] = None) -> SignatureEvent:
    """Add a hash-chained event to the session. The caller commits."""
    last = session.exec(
        select(SignatureEvent).where(SignatureEvent.document_id == document_id).order_by(SignatureEvent.id.desc())
    ).first()
    prev_hash = last.hash if last else GENESIS_HASH
    payload = {"actor": actor, "type": type_, "meta": meta}
    event = SignatureEvent(
        document_id=document_id,
        actor=actor,
        type=type_,
        meta_json=canonical_json(payload),
        prev_hash=prev_hash,
        ip=ip,
    )
    event.hash = sha256_bytes((prev_hash + event.meta_json).encode())
    session.add(event)
    session.flush()
    return event

def verify_chain(events: List[SignatureEvent]) -> bool:
    prev_hash = GENESIS_HASH
    for event in events:
        if event.prev_hash != prev_hash:
            return False
        if event.hash != sha256_bytes((prev_hash + event.meta_json).encode()):
            return False
        prev_hash = event.hash
    return True

def audit_trail(session: Session, document_id: int) -> dict:
    signatures = session.exec(
        select(Signature).where(Signature.file_id == document_id).order_by(Signature.id)
    ).all()
    events = session.exec(
        select(SignatureEvent).where(SignatureEvent.document_id == document_id).order_by(SignatureEvent.id)
    ).all()
    return {
        "signatures": [
            {
                "id": s.id,
                "signer": s.signer_id,
                "status": s.status,
                "signedAt": s.signed_at,
                "ipAddress": s.ip_address,
            }
            for s in signatures
        ],
        "events": [
            {"id": e.id, "actor": e.actor, "type": e.type, "at": e.at, "ip": e.ip, "hash": e.hash}
            for e in events
        ],
        "chainValid": verify_chain(events),
    }
