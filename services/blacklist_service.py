from datetime import datetime, timezone
from jose import JWTError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from core.result import Err, ErrorKind, Ok, Result
from models.blacklisted_tokens import BlacklistedToken
from models.users import User
from schemas.auth_schemas import BlacklistedTokenResource
from services.token_service import TokenService
from utils.logger import get_logger

logger = get_logger(__name__)


class BlacklistService:
    """
    Keeps the list of revoked access tokens.

    Only tokens carrying our signature are accepted; expiry is not checked,
    so a token may be blacklisted right up to (and past) its ``exp``.
    """

    def __init__(self, token_service: TokenService):
        self.token_service = token_service

    def _find(self, db: Session, token: str) -> BlacklistedToken | None:
        return db.query(BlacklistedToken).filter(BlacklistedToken.token == token).first()

    def create(self, db: Session, token: str) -> Result:
        try:
            payload = self.token_service.decode_token(token, verify_exp=False)
        except JWTError:
            logger.warning("Blacklist request with invalid token")
            return Err(ErrorKind.UNAUTHORIZED, "Token is invalid")

        existing = self._find(db, token)
        if existing is not None:
            return Ok(BlacklistedTokenResource.model_validate(existing), "Token already blacklisted")

        exp = payload.get("exp")
        user_id = payload.get("id")
        if user_id is not None and db.get(User, user_id) is None:
            # account deleted since the token was issued
            user_id = None
        record = BlacklistedToken(
            token=token,
            user_id=user_id,
            blacklisted_at=datetime.now(timezone.utc),
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc) if exp else None
        )
        db.add(record)
        try:
            db.commit()
        except IntegrityError:
            # a concurrent request blacklisted the same token first
            db.rollback()
            existing = self._find(db, token)
            if existing is None:
                raise
            return Ok(BlacklistedTokenResource.model_validate(existing), "Token already blacklisted")

        logger.info("Token blacklisted", extra={"user_id": record.user_id})
        return Ok(BlacklistedTokenResource.model_validate(record), "Token blacklisted successfully")

    def is_blacklisted(self, db: Session, token: str) -> bool:
        return db.query(BlacklistedToken.id).filter(BlacklistedToken.token == token).first() is not None

    def purge_expired(self, db: Session) -> int:
        """Entries whose token has expired are rejected on expiry alone and can go."""
        count = db.query(BlacklistedToken).filter(
            BlacklistedToken.expires_at.is_not(None),
            BlacklistedToken.expires_at <= datetime.now(timezone.utc)
        ).delete(synchronize_session=False)
        db.commit()
        if count:
            logger.info("Purged expired blacklist entries", extra={"count": count})
        return count
