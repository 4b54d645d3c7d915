import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./docsign.db")
MINIO_ENDPOINT = os.getenv("MINIO_ENDPOINT", "minio:9000")
MINIO_ACCESS_KEY = os.getenv("MINIO_ACCESS_KEY", "minioadmin")
MINIO_SECRET_KEY = os.getenv("MINIO_SECRET_KEY", "minioadmin")
MINIO_BUCKET = os.getenv("MINIO_BUCKET", "documents")
MINIO_SECURE = os.getenv("MINIO_SECURE", "false").lower() in ("1", "true", "yes")
SECRET_KEY = os.getenv("SECRET_KEY", "devsecret")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

FONTS_DIR = os.getenv("FONTS_DIR", os.path.join(os.path.dirname(__file__), "assets", "fonts"))
FALLBACK_FONT = os.getenv("FALLBACK_FONT", "Times-Italic")
SIGNATURE_FONT_SIZE = float(os.getenv("SIGNATURE_FONT_SIZE", "20"))
SIGNED_PREFIX = os.getenv("SIGNED_PREFIX", "signed")
