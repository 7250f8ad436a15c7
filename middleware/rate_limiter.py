from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request
from jose import jwt, JWTError
from core.config import settings


def get_user_id(request: Request) -> str:
    """Rate-limit key: the user id from a bearer token, else the client address."""
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        try:
            # Signature only; an expired token still identifies its user
            claims = jwt.decode(header[len("Bearer "):], settings.SECRET_KEY,
                                algorithms=[settings.ALGORITHM], options={"verify_exp": False})
        except JWTError:
            claims = {}
        if claims.get("id"):
            return f"user:{claims['id']}"

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_user_id,
    default_limits=["200/hour"],
    enabled=settings.ENV != "testing"
)
