import hashlib
import re

_HEX_DIGEST = re.compile(r"^[0-9a-f]{64}$")


def content_hash(data: bytes) -> str:
    """Return the lowercase hex SHA-256 digest of ``data``."""
    return hashlib.sha256(data).hexdigest()


def normalize_hash(value: str) -> str:
    """Lowercase a client-supplied digest and strip an optional ``0x`` prefix.

    Raises:
        ValueError: if the result is not a 64-character hex digest.
    """
    cleaned = value.strip().lower()
    if cleaned.startswith("0x"):
        cleaned = cleaned[2:]
    if not _HEX_DIGEST.match(cleaned):
        raise ValueError(f"'{value}' is not a SHA-256 hex digest")
    return cleaned
