"""
Random state/nonce generation and constant-time comparison.
"""
import hmac
import secrets

# 20 bytes -> 160 bits of entropy, 40 hex chars
TOKEN_BYTES = 20


def generate_token() -> str:
    """Unpredictable opaque string from the OS CSPRNG."""
    return secrets.token_hex(TOKEN_BYTES)


def generate_state() -> str:
    """Opaque value for CSRF protection; returned in callback."""
    return generate_token()


def generate_nonce() -> str:
    """Random value bound into the ID token to detect replay."""
    return generate_token()


def tokens_match(expected: str | None, received: str | None) -> bool:
    """
    Fixed-time comparison of a stored secret against a received value.
    False when either side is missing or empty.
    """
    if not expected or not received:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8"))
