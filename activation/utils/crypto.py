# activation/utils/crypto.py
import hmac
import secrets


def generate_session_token() -> str:
    # 256 bits, url-safe so it can sit in a cookie unquoted
    return secrets.token_urlsafe(32)


def secret_matches(supplied: str | None, expected: str) -> bool:
    """Exact equality, evaluated in constant time."""
    if supplied is None:
        return False
    return hmac.compare_digest(supplied.encode(), expected.encode())
