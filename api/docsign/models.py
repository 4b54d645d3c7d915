from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field as ORMField

class Document(SQLModel, table=True):
    id: Optional[int] = ORMField(default=None, primary_key=True)
    owner_id: str
    filename: str
    filepath: str  # object key of the original, never modified
    status: str = "draft"  # draft|pending|signed|rejected
    signed_file: Optional[str] = None
    sha256_signed: Optional[str] = None
    created_at: datetime = ORMField(default_factory=datetime.utcnow)
    updated_at: datetime = ORMField(default_factory=datetime.utcnow)

class Signature(SQLModel, table=True):
    __table_args__ = {"sqlite_autoincrement": True}  # ids are never reused after delete
    id: Optional[int] = ORMField(default=None, primary_key=True)
    file_id: int = ORMField(index=True, foreign_key="document.id")
    signer_id: str = ORMField(index=True)
    page_number: int
    x_coordinate: float
    y_coordinate: float
    signature: str
    font: Optional[str] = None
    pdf_page_height: float
    pdf_page_width: float
    rendered_page_height: Optional[float] = None
    rendered_page_width: Optional[float] = None
    # cached at placement; finalize re-derives from the fields above
    pdf_x: Optional[float] = None
    pdf_y: Optional[float] = None
    width_scale: Optional[float] = None
    height_scale: Optional[float] = None
    ip_address: Optional[str] = None
    status: str = "pending"  # pending|signed|rejected
    reject_reason: Optional[str] = None
    signed_at: Optional[datetime] = None
    created_at: datetime = ORMField(default_factory=datetime.utcnow)

class SignatureEvent(SQLModel, table=True):
    __table_args__ = {"sqlite_autoincrement": True}
    id: Optional[int] = ORMField(default=None, primary_key=True)
    document_id: int = ORMField(index=True)
    actor: str  # system|signer:<id>
    type: str   # placed|removed|cleared|accepted|rejected|finalized
    meta_json: str = "{}"
    ip: Optional[str] = None
    at: datetime = ORMField(default_factory=datetime.utcnow)
    prev_hash: Optional[str] = None
    hash: Optional[str] = None
