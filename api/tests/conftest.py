import os
from io import BytesIO
from typing import Dict

import pytest
from fastapi.testclient import TestClient
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas
from sqlmodel import SQLModel, Session, create_engine

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("FONTS_DIR", "/nonexistent-fonts")

from docsign.main import app  # noqa: E402
from docsign import db as db_module  # noqa: E402
from docsign import storage as storage_module  # noqa: E402
from docsign.db import get_session, init_db  # noqa: E402
from docsign.fonts import FontRegistry  # noqa: E402
from docsign.models import Document  # noqa: E402
from docsign.utils import make_token  # noqa: E402


def make_pdf(pages=1, pagesize=letter) -> bytes:
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=pagesize)
    for i in range(pages):
        c.setFont("Helvetica", 12)
        c.drawString(72, 72, f"Page {i + 1}")
        c.showPage()
    c.save()
    return buf.getvalue()


def auth_headers(user_id) -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token({'user_id': user_id})}"}


@pytest.fixture(scope="session")
def test_engine(tmp_path_factory):
    db_path = tmp_path_factory.mktemp("data") / "test.db"
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )
    return engine


@pytest.fixture
def setup_db(test_engine):
    SQLModel.metadata.drop_all(test_engine)
    init_db(test_engine)
    yield
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture
def session(test_engine, setup_db):
    with Session(test_engine) as s:
        yield s


@pytest.fixture
def mock_storage(monkeypatch) -> Dict[str, bytes]:
    store: Dict[str, bytes] = {}

    def fake_put_bytes(key: str, data: bytes, content_type: str = "application/octet-stream"):
        store[key] = bytes(data)

    def fake_get_bytes(key: str) -> bytes:
        if key not in store:
            raise FileNotFoundError(key)
        return store[key]

    def fake_object_exists(key: str) -> bool:
        return key in store

    monkeypatch.setattr(storage_module, "put_bytes", fake_put_bytes)
    monkeypatch.setattr(storage_module, "get_bytes", fake_get_bytes)
    monkeypatch.setattr(storage_module, "object_exists", fake_object_exists)
    return store


@pytest.fixture
def fonts() -> FontRegistry:
    return FontRegistry()


@pytest.fixture
def make_document(session, mock_storage):
    def _make(pages=1, pagesize=letter, owner="owner-1", filename="contract.pdf"):
        key = f"uploads/{len(mock_storage)}-{filename}"
        mock_storage[key] = make_pdf(pages, pagesize)
        doc = Document(owner_id=owner, filename=filename, filepath=key, status="pending")
        session.add(doc)
        session.commit()
        session.refresh(doc)
        return doc
    return _make


@pytest.fixture
def client(test_engine, setup_db, mock_storage):
    db_module.engine = test_engine

    def override_session():
        with Session(test_engine) as s:
            yield s

    app.dependency_overrides[get_session] = override_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
