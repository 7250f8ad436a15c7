"""Builds the service graph once at startup."""

from dataclasses import dataclass
from datetime import timedelta

from core.config import Settings
from services.auth_service import AuthService
from services.blacklist_service import BlacklistService
from services.token_service import TokenService
from services.user_service import UserService


@dataclass
class Container:
    token_service: TokenService
    user_service: UserService
    blacklist_service: BlacklistService
    auth_service: AuthService


def build_container(settings: Settings) -> Container:
    token_service = TokenService(
        secret_key=settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        access_token_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        refresh_token_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )
    user_service = UserService()
    blacklist_service = BlacklistService(token_service)
    auth_service = AuthService(token_service, user_service, blacklist_service)
    return Container(
        token_service=token_service,
        user_service=user_service,
        blacklist_service=blacklist_service,
        auth_service=auth_service,
    )
