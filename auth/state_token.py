from __future__ import annotations

import json

from auth import codec
from auth.errors import InvalidSignature, MalformedEncoding, MalformedState
from auth.models import AuthorizationRequest
from auth.signer import Signer


def _canonical_bytes(state: AuthorizationRequest) -> bytes:
    return json.dumps(state.to_payload(), separators=(",", ":"), sort_keys=True).encode("utf-8")


def create(state: AuthorizationRequest, signer: Signer) -> str:
    data = _canonical_bytes(state)
    return f"{codec.encode(data)}.{signer.sign(data)}"


def parse(token: str, signer: Signer) -> AuthorizationRequest:
    parts = token.split(".")
    if len(parts) != 2:
        raise MalformedState("State must have exactly two segments.")
    body_b64, signature = parts

    try:
        data = codec.decode(body_b64)
    except MalformedEncoding as error:
        raise MalformedState("State body is not valid base64url.") from error

    if not signer.verify(data, signature):
        raise InvalidSignature("State signature verification failed.")

    try:
        payload = json.loads(data)
        return AuthorizationRequest.from_payload(payload)
    except (UnicodeDecodeError, ValueError) as error:
        raise MalformedState("State payload is malformed.") from error
