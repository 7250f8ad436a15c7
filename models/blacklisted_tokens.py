from core.database import Base
from sqlalchemy import Column, DateTime, Integer, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

class BlacklistedToken(Base):
    """Access token revoked before its natural expiry (logout)."""
    __tablename__ = "blacklisted_tokens"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)

    #relationships
    user = relationship("User", back_populates="blacklisted_tokens")

    token = Column(Text, nullable=False, unique=True)
    blacklisted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True, index=True)

    def __repr__(self):
        return f"<BlacklistedToken id={self.id} user_id={self.user_id}>"
