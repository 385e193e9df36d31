from backend.app.models.account import Account
from backend.app.models.session import AuthSession

__all__ = ["Account", "AuthSession"]
