from fastapi import APIRouter, Header, Request
from starlette import status
from typing import Annotated
from core.config import settings
from schemas.auth_schemas import BlacklistedTokenRequest, LoginRequest, RefreshTokenRequest
from middleware.rate_limiter import limiter
from utils.deps import container_dependency, db_dependency
from utils.responses import to_response
from utils.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(
    prefix="/api/v1/auth",
    tags=["auth"]
)


@router.post("/login", status_code=status.HTTP_200_OK)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
def login(request: Request, body: LoginRequest, db: db_dependency, container: container_dependency):
    """
    Exchange email and password for an access token and a refresh token.

    Bad credentials answer 422 with ``success=false``.
    """
    return to_response(container.auth_service.login(db, body))


@router.post("/blacklisted_token", status_code=status.HTTP_200_OK)
def add_token_to_blacklist(body: BlacklistedTokenRequest, db: db_dependency, container: container_dependency):
    """
    Revoke a token so the authentication filter rejects it from now on.
    """
    return to_response(container.auth_service.blacklist(db, body.token))


@router.get("/logout", status_code=status.HTTP_200_OK)
def logout(db: db_dependency, container: container_dependency,
           authorization: Annotated[str | None, Header()] = None):
    """
    Blacklist the bearer token sent in the Authorization header.
    """
    return to_response(container.auth_service.logout(db, authorization))


@router.post("/refresh_token", status_code=status.HTTP_200_OK)
@limiter.limit(settings.REFRESH_RATE_LIMIT)
def refresh_token(request: Request, body: RefreshTokenRequest, db: db_dependency, container: container_dependency):
    """
    Rotate a refresh token: the presented token is retired and a new
    access/refresh pair is returned.
    """
    return to_response(container.auth_service.refresh(db, body.refresh_token))
