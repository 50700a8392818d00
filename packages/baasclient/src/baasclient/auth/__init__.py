from baasclient.auth.auth_storage import SecureSessionStorage
from baasclient.auth.client import AuthClient
from baasclient.auth.models import Session, User

__all__ = [
    "AuthClient",
    "SecureSessionStorage",
    "Session",
    "User",
]
