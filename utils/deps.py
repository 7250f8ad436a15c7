from core.database import SessionLocal
from core.container import Container
from typing import Annotated
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from starlette import status
from models.users import User
from utils.logger import get_logger

logger = get_logger(__name__)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

db_dependency = Annotated[Session, Depends(get_db)]


def get_container(request: Request) -> Container:
    """Services built once at startup and stored on the application."""
    return request.app.state.container

container_dependency = Annotated[Container, Depends(get_container)]


bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: db_dependency,
    container: container_dependency,
) -> User:
    """
    Authentication filter for protected endpoints.

    Rejects missing, invalid, expired and blacklisted access tokens, and
    tokens whose user no longer exists or is inactive.
    """
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="Not authenticated")

    token = credentials.credentials
    payload = container.token_service.decode_access_token(token)
    if payload is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="Could not validate credentials.")

    if container.blacklist_service.is_blacklisted(db, token):
        logger.warning("Rejected blacklisted access token", extra={"user_id": payload.get("id")})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="Token has been revoked.")

    user = container.user_service.get_active_user_by_id(db, payload.get("id"))
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="Could not validate credentials.")

    return user

user_dependency = Annotated[User, Depends(get_current_user)]
