import pytest
from sqlmodel import select

from docsign.audit import audit_trail
from docsign.errors import ConflictError, ForbiddenError, NotFoundError
from docsign.lifecycle import accept, clear_all, reject, remove
from docsign.models import Document, Signature
from docsign.placement import place


def _place(session, doc, signer="alice"):
    return place(session, doc.id, signer, 1, 100, 100, signer.title(), None, 1056, 816).signature_id


def test_accept_cascades_document_status(session, make_document):
    doc = make_document()
    sig_id = _place(session, doc)
    sig = accept(session, sig_id)
    assert sig.status == "signed"
    assert sig.signed_at is not None
    session.expire_all()
    assert session.get(Document, doc.id).status == "signed"


def test_reject_stores_reason(session, make_document):
    doc = make_document()
    sig_id = _place(session, doc)
    sig = reject(session, sig_id, "wrong page")
    assert sig.status == "rejected"
    assert sig.reject_reason == "wrong page"
    session.expire_all()
    assert session.get(Document, doc.id).status == "rejected"


def test_terminal_states_do_not_transition(session, make_document):
    doc = make_document()
    sig_id = _place(session, doc)
    accept(session, sig_id)
    with pytest.raises(ConflictError):
        reject(session, sig_id, "too late")
    with pytest.raises(ConflictError):
        accept(session, sig_id)


def test_unknown_signature(session, mock_storage):
    with pytest.raises(NotFoundError):
        accept(session, 123)
    with pytest.raises(NotFoundError):
        reject(session, 123, None)
    with pytest.raises(NotFoundError):
        remove(session, 123, "alice")


def test_only_signer_can_remove(session, make_document):
    doc = make_document()
    sig_id = _place(session, doc, "alice")
    with pytest.raises(ForbiddenError):
        remove(session, sig_id, "mallory")
    assert session.get(Signature, sig_id) is not None
    remove(session, sig_id, "alice")
    session.expire_all()
    assert session.get(Signature, sig_id) is None


def test_signed_signature_cannot_be_removed(session, make_document):
    doc = make_document()
    sig_id = _place(session, doc, "alice")
    accept(session, sig_id)
    with pytest.raises(ConflictError):
        remove(session, sig_id, "alice")


def test_clear_all_only_touches_requesters_signatures(session, make_document):
    doc = make_document()
    other_doc = make_document(filename="other.pdf")
    _place(session, doc, "alice")
    _place(session, doc, "bob")
    _place(session, other_doc, "alice")

    assert clear_all(session, doc.id, "alice") == 1
    remaining = session.exec(select(Signature)).all()
    assert sorted((s.file_id, s.signer_id) for s in remaining) == sorted(
        [(doc.id, "bob"), (other_doc.id, "alice")]
    )
    assert clear_all(session, doc.id, "alice") == 0


def test_audit_trail_chain(session, make_document):
    doc = make_document()
    sig_id = _place(session, doc, "alice")
    reject(session, sig_id, "blurry", actor="user:owner-1")
    _place(session, doc, "alice")

    trail = audit_trail(session, doc.id)
    assert [e["type"] for e in trail["events"]] == ["placed", "rejected", "placed"]
    assert trail["chainValid"] is True
    assert {s["status"] for s in trail["signatures"]} == {"rejected", "pending"}
