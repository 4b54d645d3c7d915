from typing import Optional
from fastapi import APIRouter, Depends, Request, Response
from sqlmodel import Session, select
from ..audit import audit_trail
from ..auth import Identity, require_identity
from ..db import get_session
from ..errors import NotFoundError
from ..finalize import finalize as finalize_document
from ..fonts import FontRegistry
from ..lifecycle import accept, clear_all, reject, remove
from ..models import Document, Signature
from ..pdfpages import load_pdf_bytes
from ..placement import place
from ..schemas import SignaturePlace, FinalizeRequest, ClearSignatures, RejectRequest
from ..utils import client_ip

router = APIRouter()

def get_fonts(request: Request) -> FontRegistry:
    return request.app.state.fonts

def _signature_dict(sig: Signature) -> dict:
    return {
        "id": sig.id,
        "fileId": sig.file_id,
        "signer": sig.signer_id,
        "pageNumber": sig.page_number,
        "xCoordinate": sig.x_coordinate,
        "yCoordinate": sig.y_coordinate,
        "signature": sig.signature,
        "font": sig.font,
        "pdfPageHeight": sig.pdf_page_height,
        "pdfPageWidth": sig.pdf_page_width,
        "renderedPageHeight": sig.rendered_page_height,
        "renderedPageWidth": sig.rendered_page_width,
        "status": sig.status,
        "signedAt": sig.signed_at,
    }

@router.post("/place")
def place_signature(
    payload: SignaturePlace,
    request: Request,
    session: Session = Depends(get_session),
    user: Identity = Depends(require_identity),
):
    result = place(
        session,
        document_id=payload.file_id,
        signer_id=user.user_id,
        page_number=payload.page_number,
        x=payload.x_coordinate,
        y=payload.y_coordinate,
        text=payload.signature,
        font_label=payload.font,
        rendered_height=payload.rendered_page_height,
        rendered_width=payload.rendered_page_width,
        ip_address=client_ip(request),
    )
    data = result.to_dict()
    return {
        "success": True,
        "msg": "Signature placed successfully",
        "data": {
            "signatureId": data["signature_id"],
            "superseded": data["superseded"],
            "pdfCoordinates": data["pdf_coordinates"],
            "browserCoordinates": data["browser_coordinates"],
            "pageDimensions": data["page_dimensions"],
            "scaleFactors": data["scale_factors"],
        },
    }

@router.get("/file/{file_id}")
def list_pending(file_id: int, session: Session = Depends(get_session), user: Identity = Depends(require_identity)):
    rows = session.exec(
        select(Signature).where(Signature.file_id == file_id, Signature.status == "pending").order_by(Signature.id)
    ).all()
    return [_signature_dict(s) for s in rows]

@router.post("/finalize")
def finalize(
    payload: FinalizeRequest,
    session: Session = Depends(get_session),
    fonts: FontRegistry = Depends(get_fonts),
    user: Identity = Depends(require_identity),
):
    result = finalize_document(session, payload.file_id, fonts, actor=f"user:{user.user_id}")
    return {
        "success": True,
        "msg": "PDF finalized successfully",
        "signedFile": result.signed_file,
        "sha256": result.sha256,
        "applied": result.applied,
        "skipped": result.skipped,
    }

@router.get("/signed/{file_id}")
def get_signed_pdf(file_id: int, session: Session = Depends(get_session), user: Identity = Depends(require_identity)):
    doc = session.get(Document, file_id)
    if not doc:
        raise NotFoundError("Document not found", {"fileId": file_id})
    if not doc.signed_file:
        raise NotFoundError("Signed PDF not ready", {"fileId": file_id})
    pdf_bytes = load_pdf_bytes(doc.signed_file)
    filename = doc.signed_file.rsplit("/", 1)[-1]
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

@router.delete("/clear-signatures")
def clear_signatures(
    request: Request,
    payload: ClearSignatures,
    session: Session = Depends(get_session),
    user: Identity = Depends(require_identity),
):
    removed = clear_all(session, payload.file_id, user.user_id, ip=client_ip(request))
    return {"msg": "Signatures cleared successfully", "removed": removed}

@router.delete("/remove/{signature_id}")
def remove_signature(
    signature_id: int,
    request: Request,
    session: Session = Depends(get_session),
    user: Identity = Depends(require_identity),
):
    remove(session, signature_id, user.user_id, ip=client_ip(request))
    return {"msg": "Signature removed successfully"}

@router.get("/audit/{file_id}")
def get_audit(file_id: int, session: Session = Depends(get_session), user: Identity = Depends(require_identity)):
    return audit_trail(session, file_id)

@router.post("/accept/{signature_id}")
def accept_signature(signature_id: int, session: Session = Depends(get_session), user: Identity = Depends(require_identity)):
    sig = accept(session, signature_id, actor=f"user:{user.user_id}")
    return {"msg": "Signature Accepted", "signature": _signature_dict(sig)}

@router.post("/reject/{signature_id}")
def reject_signature(
    signature_id: int,
    payload: Optional[RejectRequest] = None,
    session: Session = Depends(get_session),
    user: Identity = Depends(require_identity),
):
    reason = payload.reason if payload else None
    sig = reject(session, signature_id, reason, actor=f"user:{user.user_id}")
    return {"msg": "Signature rejected", "signature": {**_signature_dict(sig), "rejectReason": sig.reject_reason}}
