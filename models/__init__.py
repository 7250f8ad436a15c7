from models.users import User
from models.refresh_tokens import RefreshToken
from models.blacklisted_tokens import BlacklistedToken

__all__ = ["User", "RefreshToken", "BlacklistedToken"]
