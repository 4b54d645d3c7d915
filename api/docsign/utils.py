import hashlib, json
from typing import Optional
from fastapi import Request
from itsdangerous import URLSafeSerializer
from .config import SECRET_KEY

def sha256_bytes(b: bytes) -> str:
    return hashlib.sha256(b).hexdigest()

def canonical_json(obj) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), default=str)

def make_token(payload: dict) -> str:
    s = URLSafeSerializer(SECRET_KEY, salt="auth")
    return s.dumps(payload)

def read_token(token: str) -> dict:
    s = URLSafeSerializer(SECRET_KEY, salt="auth")
    return s.loads(token)

def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None
