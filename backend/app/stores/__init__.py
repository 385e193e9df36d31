from backend.app.stores.account_store import AccountStore
from backend.app.stores.session_store import SessionStore

__all__ = ["AccountStore", "SessionStore"]
