from __future__ import annotations

import base64
import binascii
import re

from auth.errors import MalformedEncoding

_B64URL_RE = re.compile(r"[A-Za-z0-9_-]*")


def encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def decode(value: str) -> bytes:
    if not _B64URL_RE.fullmatch(value) or len(value) % 4 == 1:
        raise MalformedEncoding("Invalid base64url input.")
    padded = value + "=" * (-len(value) % 4)
    try:
        data = base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as error:
        raise MalformedEncoding("Invalid base64url input.") from error
    # Only the canonical spelling is accepted; non-zero trailing bits would let
    # two strings decode to the same bytes.
    if encode(data) != value:
        raise MalformedEncoding("Non-canonical base64url input.")
    return data
