from __future__ import annotations

import hashlib
import hmac

from auth import codec
from auth.errors import MalformedEncoding

INSECURE_DEV_SECRET = "dev-secret-change-in-production"


class Signer:
    """HMAC-SHA256 over raw bytes, signatures rendered as unpadded base64url."""

    def __init__(self, secret: str) -> None:
        if not secret:
            raise ValueError("Signing secret must not be empty.")
        self._key = secret.encode("utf-8")

    def __repr__(self) -> str:
        return "Signer(secret=***)"

    def _digest(self, message: bytes) -> bytes:
        return hmac.new(self._key, message, hashlib.sha256).digest()

    def sign(self, message: bytes) -> str:
        return codec.encode(self._digest(message))

    def verify(self, message: bytes, signature: str) -> bool:
        try:
            actual = codec.decode(signature)
        except MalformedEncoding:
            return False
        return hmac.compare_digest(self._digest(message), actual)
