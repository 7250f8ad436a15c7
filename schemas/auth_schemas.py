from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Optional
from schemas.user_schemas import UserResource


class CamelModel(BaseModel):
    """Accepts and renders camelCase keys while keeping snake_case attributes."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str

    @field_validator('email', mode='before')
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator('password')
    @classmethod
    def validate_password(cls, value):
        if not value:
            raise ValueError('Password cannot be empty')
        return value


class RefreshTokenRequest(CamelModel):
    refresh_token: str

    @field_validator('refresh_token')
    @classmethod
    def validate_token(cls, value):
        if not value or not value.strip():
            raise ValueError('Refresh token cannot be empty')
        return value.strip()


class BlacklistedTokenRequest(CamelModel):
    token: str

    @field_validator('token')
    @classmethod
    def validate_token(cls, value):
        if not value or not value.strip():
            raise ValueError('Token cannot be empty')
        return value.strip()


class RefreshTokenResource(CamelModel):
    token: str
    refresh_token: str


class LoginResource(CamelModel):
    token: str
    refresh_token: str
    user: UserResource


class BlacklistedTokenResource(CamelModel):
    id: int
    user_id: Optional[int] = None
    blacklisted_at: datetime
    expires_at: Optional[datetime] = None
