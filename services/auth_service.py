from sqlalchemy.orm import Session
from core.result import Err, ErrorKind, Ok, Result
from schemas.auth_schemas import LoginRequest, LoginResource
from schemas.user_schemas import UserResource
from services.blacklist_service import BlacklistService
from services.token_service import TokenService
from services.user_service import UserService
from utils.logger import get_logger

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "


class AuthService:
    """
    Login, refresh, logout and token blacklisting.

    Each operation returns a Result; the router renders it.
    """

    def __init__(self, token_service: TokenService, user_service: UserService,
                 blacklist_service: BlacklistService):
        self.token_service = token_service
        self.user_service = user_service
        self.blacklist_service = blacklist_service

    def login(self, db: Session, request: LoginRequest) -> Result:
        match self.user_service.authenticate_user(db, request.email, request.password):
            case Err() as failure:
                return failure
            case Ok(data=user):
                pair = self.token_service.issue_token_pair(db, user)
                logger.info("User logged in successfully", extra={"user_id": user.id, "email": user.email})
                return Ok(LoginResource(
                    token=pair.token,
                    refresh_token=pair.refresh_token,
                    user=UserResource.model_validate(user),
                ))

    def refresh(self, db: Session, refresh_token: str) -> Result:
        return self.token_service.rotate(db, refresh_token)

    def blacklist(self, db: Session, token: str) -> Result:
        return self.blacklist_service.create(db, token)

    def logout(self, db: Session, authorization: str | None) -> Result:
        """
        Blacklists the bearer token from the Authorization header.

        Logging out twice with the same token succeeds both times.
        """
        if not authorization or not authorization.startswith(BEARER_PREFIX):
            return Err(ErrorKind.UNAUTHORIZED, "Missing or invalid Authorization header")

        token = authorization[len(BEARER_PREFIX):].strip()
        if not token:
            return Err(ErrorKind.UNAUTHORIZED, "Missing or invalid Authorization header")

        match self.blacklist_service.create(db, token):
            case Err() as failure:
                return failure
            case Ok(data=blacklisted):
                logger.info("User logged out", extra={"user_id": blacklisted.user_id})
                return Ok(blacklisted, "Logout successful")
