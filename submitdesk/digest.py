# submitdesk/digest.py
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.backends import default_backend


def sha256_bytes(data: bytes) -> str:
    h = hashes.Hash(hashes.SHA256(), backend=default_backend())
    h.update(data)
    return h.finalize().hex()


def short_digest(hex_digest: str, n: int = 16) -> str:
    return (hex_digest[:n] + "...") if hex_digest else ""
