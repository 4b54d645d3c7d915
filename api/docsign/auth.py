from typing import Optional
from fastapi import Header
from itsdangerous import BadSignature
from pydantic import BaseModel

from .errors import UnauthorizedError
from .utils import read_token


class Identity(BaseModel):
    user_id: str


def require_identity(authorization: Optional[str] = Header(default=None)) -> Identity:
    """Resolve the caller from ``Authorization: Bearer <token>``.

    Tokens are issued by the account service; this service only verifies the
    signature and reads ``user_id``.
    """
    if not authorization:
        raise UnauthorizedError("No token, authorization denied")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError("No token, authorization denied")
    try:
        data = read_token(token.strip())
    except BadSignature:
        raise UnauthorizedError("Invalid token")
    user_id = data.get("user_id") if isinstance(data, dict) else None
    if user_id is None or str(user_id) == "":
        raise UnauthorizedError("Invalid token")
    return Identity(user_id=str(user_id))
