from core.database import Base
from sqlalchemy import Column, Integer, String, Boolean
from sqlalchemy.orm import relationship
from models.mixins import CreatedAtMixin, UpdatedAtMixin

class User(Base, CreatedAtMixin, UpdatedAtMixin):
    __tablename__ = "users"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #relationships
    refresh_tokens = relationship("RefreshToken", back_populates="user",
                                  cascade="all, delete-orphan", passive_deletes=True,
                                  foreign_keys="RefreshToken.user_id")
    blacklisted_tokens = relationship("BlacklistedToken", back_populates="user", passive_deletes=True)

    email = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(100))
    last_name = Column(String(100))
    middle_name = Column(String(100))
    phone = Column(String(32))
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<User id={self.id} email={self.email}>"
