from core.database import Base
from sqlalchemy import Column, Boolean, DateTime, String, Integer, ForeignKey
from sqlalchemy.orm import relationship
from models.mixins import CreatedAtMixin

class RefreshToken(Base, CreatedAtMixin):
    """
    Persisted refresh token, looked up by its string value.

    A token is rotated by flipping ``revoked`` and pointing ``replaced_by_id``
    at the record issued in its place. Revoked rows never refresh again.
    """
    __tablename__ = "refresh_tokens"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    replaced_by_id = Column(Integer, ForeignKey("refresh_tokens.id", ondelete="SET NULL"), nullable=True)

    #relationships
    user = relationship("User", back_populates="refresh_tokens", foreign_keys=[user_id])

    refresh_token = Column(String(1024), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    revoked = Column(Boolean, default=False, nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<RefreshToken id={self.id} user_id={self.user_id} revoked={self.revoked}>"
