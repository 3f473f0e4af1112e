# warehouse_server/app/auth.py
import hmac

from . import config


def verify_password(password: str) -> bool:
    """Compare against the single configured secret. No lockout, no session."""
    if not password:
        return False
    return hmac.compare_digest(password.encode("utf-8"), config.APP_PASSWORD.encode("utf-8"))
