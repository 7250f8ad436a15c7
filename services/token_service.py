import secrets
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta
from typing import Any, Dict, Optional
from sqlalchemy import select
from sqlalchemy.orm import Session
from jose import jwt, JWTError
from core.result import Err, ErrorKind, Ok, Result
from models.refresh_tokens import RefreshToken
from models.users import User
from schemas.auth_schemas import RefreshTokenResource
from utils.logger import get_logger

logger = get_logger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"
INVALID_REFRESH_TOKEN = "Refresh token is invalid"


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


@dataclass(frozen=True)
class TokenPair:
    token: str
    refresh_token: str


class TokenService:
    """
    Handles all token operations: creation, validation, rotation, and cleanup.
    """

    def __init__(self, secret_key: str, algorithm: str,
                 access_token_ttl: timedelta, refresh_token_ttl: timedelta):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.access_token_ttl = access_token_ttl
        self.refresh_token_ttl = refresh_token_ttl

    def _encode(self, email: str, user_id: int, token_type: str, expires_at: datetime) -> str:
        payload = {
            "sub": email,
            "id": user_id,
            "type": token_type,
            # unique per token, so two tokens issued in the same second still differ
            "jti": secrets.token_urlsafe(16),
            "iat": datetime.now(timezone.utc),
            "exp": expires_at
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def create_access_token(self, user_id: int, email: str, expires_delta: Optional[timedelta] = None) -> str:
        """
        Creates a signed access token.

        Args:
            user_id: User's ID
            email: User's email
            expires_delta: Token lifetime (default: ACCESS_TOKEN_EXPIRE_MINUTES)
        """
        expire = datetime.now(timezone.utc) + (expires_delta or self.access_token_ttl)
        return self._encode(email, user_id, ACCESS_TOKEN_TYPE, expire)

    def create_refresh_token(self, user_id: int, email: str, expires_delta: Optional[timedelta] = None):
        """
        Creates a signed refresh token.

        Returns:
            Tuple of (refresh_token_string, expires_at)
        """
        expire = datetime.now(timezone.utc) + (expires_delta or self.refresh_token_ttl)
        return self._encode(email, user_id, REFRESH_TOKEN_TYPE, expire), expire

    def decode_token(self, token: str, verify_exp: bool = True) -> Dict[str, Any]:
        """Decode and verify a token. Raises JWTError on bad signature or expiry."""
        return jwt.decode(
            token,
            self.secret_key,
            algorithms=[self.algorithm],
            options={"verify_exp": verify_exp}
        )

    def _decode_typed(self, token: str, token_type: str) -> Optional[Dict[str, Any]]:
        try:
            payload = self.decode_token(token)
        except JWTError:
            return None

        if payload.get("type") != token_type:
            return None
        if not payload.get("sub") or payload.get("id") is None:
            return None
        return payload

    def decode_access_token(self, token: str) -> Optional[Dict[str, Any]]:
        return self._decode_typed(token, ACCESS_TOKEN_TYPE)

    def is_refresh_token_valid(self, refresh_token: str) -> bool:
        """Signature, expiry and token type check. Does not touch the store."""
        return self._decode_typed(refresh_token, REFRESH_TOKEN_TYPE) is not None

    def _store_refresh_token(self, db: Session, user: User) -> RefreshToken:
        refresh_token, expires_at = self.create_refresh_token(user.id, user.email)
        record = RefreshToken(
            user_id=user.id,
            refresh_token=refresh_token,
            expires_at=expires_at
        )
        db.add(record)
        db.flush()
        return record

    def issue_token_pair(self, db: Session, user: User) -> TokenPair:
        """
        Creates access token + refresh token pair and stores the refresh token.
        """
        access_token = self.create_access_token(user.id, user.email)
        record = self._store_refresh_token(db, user)
        db.commit()

        logger.debug("Issued token pair", extra={"user_id": user.id, "refresh_token_id": record.id})
        return TokenPair(token=access_token, refresh_token=record.refresh_token)

    def rotate(self, db: Session, refresh_token: str) -> Result:
        """
        Exchanges a refresh token for a new pair and retires the old one.

        The old record is retired with a conditional update, so when two
        requests race on the same token only one of them gets a new pair.
        """
        if not self.is_refresh_token_valid(refresh_token):
            return Err(ErrorKind.UNAUTHORIZED, INVALID_REFRESH_TOKEN)

        record = db.query(RefreshToken).filter(
            RefreshToken.refresh_token == refresh_token
        ).first()

        if record is None:
            logger.warning("Refresh token not found in store")
            return Err(ErrorKind.UNAUTHORIZED, "Refresh token not found")

        if record.revoked:
            logger.warning(
                "Reuse of rotated refresh token",
                extra={"user_id": record.user_id, "refresh_token_id": record.id}
            )
            return Err(ErrorKind.UNAUTHORIZED, "Refresh token has been revoked")

        if _as_utc(record.expires_at) <= datetime.now(timezone.utc):
            return Err(ErrorKind.UNAUTHORIZED, "Refresh token expired")

        user = record.user
        if user is None or not user.is_active:
            if user is not None:
                # a deactivated account keeps no live sessions
                self.revoke_all_user_tokens(db, user.id)
            return Err(ErrorKind.UNAUTHORIZED, "Account is inactive")

        retired = db.query(RefreshToken).filter(
            RefreshToken.id == record.id,
            RefreshToken.revoked == False  # noqa: E712
        ).update(
            {"revoked": True, "revoked_at": datetime.now(timezone.utc)},
            synchronize_session=False
        )
        if retired != 1:
            db.rollback()
            return Err(ErrorKind.UNAUTHORIZED, "Refresh token has been revoked")

        new_token = self.create_access_token(user.id, user.email)
        new_record = self._store_refresh_token(db, user)
        record.replaced_by_id = new_record.id
        db.commit()

        logger.info("Refresh token rotated", extra={"user_id": user.id})
        return Ok(RefreshTokenResource(token=new_token, refresh_token=new_record.refresh_token))

    def revoke_all_user_tokens(self, db: Session, user_id: int) -> int:
        """
        Revokes all refresh tokens for a user (logout from all devices).
        """
        count = db.query(RefreshToken).filter(
            RefreshToken.user_id == user_id,
            RefreshToken.revoked == False  # noqa: E712
        ).update(
            {"revoked": True, "revoked_at": datetime.now(timezone.utc)},
            synchronize_session=False
        )
        db.commit()
        return count

    def purge_expired(self, db: Session) -> int:
        """Deletes refresh tokens past their expiry."""
        now = datetime.now(timezone.utc)
        # unlink rows that point at a record about to be deleted
        expired_ids = select(RefreshToken.id).where(RefreshToken.expires_at <= now)
        db.query(RefreshToken).filter(
            RefreshToken.replaced_by_id.in_(expired_ids)
        ).update({"replaced_by_id": None}, synchronize_session=False)
        count = db.query(RefreshToken).filter(
            RefreshToken.expires_at <= now
        ).delete(synchronize_session=False)
        db.commit()
        if count:
            logger.info("Purged expired refresh tokens", extra={"count": count})
        return count
