from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional
import phonenumbers
import re


class UserResource(BaseModel):
    """Public view of a user. The password hash is never part of it."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    middle_name: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool = True


class CreateUserRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    email: EmailStr
    password: str
    first_name: str
    last_name: str
    middle_name: Optional[str] = None
    phone: Optional[str] = None

    @field_validator('email', mode='before')
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator('password')
    @classmethod
    def validate_password(cls, value):
        """
        Password must be at least 8 characters and contain:
        - At least one letter
        - At least one digit
        """
        if len(value) < 8:
            raise ValueError('Password must be at least 8 characters')

        if not re.search(r'[A-Za-z]', value):
            raise ValueError('Password must contain at least one letter')

        if not re.search(r'\d', value):
            raise ValueError('Password must contain at least one digit')

        return value

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, value):
        """
        Validates phone number format using Google's phonenumbers library.
        Accepts international format: +201234567890
        """
        if value is None:
            return value
        try:
            parsed = phonenumbers.parse(value, None)
            if not phonenumbers.is_valid_number(parsed):
                raise ValueError('Invalid phone number')

            return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)

        except phonenumbers.NumberParseException:
            raise ValueError('Phone number must include country code (e.g.: +966xxxxxxxxx, +20xxxxxxxxxx)')


class UserPage(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    items: list[UserResource]
    total: int
    page: int
    per_page: int
