import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .routers import signatures
from .config import CORS_ORIGINS, FONTS_DIR, LOG_LEVEL
from .db import init_db
from .errors import register_exception_handlers
from .fonts import build_font_registry

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Document Signing API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)

@app.on_event("startup")
def on_startup():
    init_db()
    app.state.fonts = build_font_registry(FONTS_DIR)

app.include_router(signatures.router, prefix="/api/signature", tags=["signature"])

@app.get("/")
def root():
    return {"ok": True, "service": "signing-api"}
