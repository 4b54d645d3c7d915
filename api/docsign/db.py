import logging
from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy import text, inspect
from .config import DATABASE_URL

logger = logging.getLogger(__name__)

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=False, pool_pre_ping=True, connect_args=_connect_args)

def init_db(bind=None):
    from .models import Document, Signature, SignatureEvent
    bind = bind or engine
    SQLModel.metadata.create_all(bind)
    ensure_pending_signature_index(bind)

def get_session():
    with Session(engine) as session:
        yield session

def ensure_pending_signature_index(bind=None):
    """At most one pending signature per (document, signer), enforced by the database."""
    bind = bind or engine
    inspector = inspect(bind)
    try:
        indexes = inspector.get_indexes("signature")
    except Exception:
        return
    if any(idx.get("name") == "uq_signature_pending" for idx in indexes):
        return
    with bind.begin() as conn:
        duplicates = conn.execute(
            text(
                "SELECT file_id, signer_id FROM signature WHERE status = 'pending' "
                "GROUP BY file_id, signer_id HAVING COUNT(*) > 1"
            )
        ).fetchall()
        if duplicates:
            logger.warning(
                "duplicate pending signatures detected; resolve before enforcing uniqueness: %s",
                ", ".join(f"{row[0]}/{row[1]}" for row in duplicates),
            )
            return
        conn.execute(
            text(
                "CREATE UNIQUE INDEX IF NOT EXISTS uq_signature_pending "
                "ON signature(file_id, signer_id) WHERE status = 'pending'"
            )
        )
