"""Compact bearer tokens: ``header.claims.signature``, all base64url.

The header is fixed and exists so the shape matches common bearer-token
conventions. Its ``alg`` is still checked on verify so a future algorithm
change cannot be silently accepted by an older verifier.

There is no revocation: a correctly signed, unexpired token is always accepted.
"""

from __future__ import annotations

import json
import time
from datetime import datetime, timezone

from auth import codec
from auth.errors import (
    EmptySubject,
    Expired,
    InvalidSignature,
    MalformedClaims,
    MalformedEncoding,
    UnsupportedAlgorithm,
)
from auth.models import PLANS, SessionClaims
from auth.signer import Signer

ALGORITHM = "HS256"
HEADER = {"alg": ALGORITHM, "typ": "JWT"}
DEFAULT_LIFETIME_SECONDS = 30 * 24 * 60 * 60


def _json_segment(payload: dict) -> str:
    return codec.encode(json.dumps(payload, separators=(",", ":")).encode("utf-8"))


def _load_segment(segment: str) -> object:
    return json.loads(codec.decode(segment))


def build(claims: SessionClaims, signer: Signer) -> str:
    signing_input = f"{_json_segment(HEADER)}.{_json_segment(claims.to_payload())}"
    signature = signer.sign(signing_input.encode("ascii"))
    return f"{signing_input}.{signature}"


def issue(
    subject: str,
    plan: str,
    signer: Signer,
    *,
    lifetime_seconds: int = DEFAULT_LIFETIME_SECONDS,
    now: float | None = None,
) -> tuple[str, SessionClaims]:
    if plan not in PLANS:
        raise ValueError(f"Unknown plan: {plan}")
    issued_at = int(time.time() if now is None else now)
    claims = SessionClaims(
        subject=subject,
        plan=plan,
        issued_at=issued_at,
        expires_at=issued_at + lifetime_seconds,
    )
    return build(claims, signer), claims


def verify(token: str, signer: Signer, *, now: float | None = None) -> SessionClaims:
    parts = token.split(".")
    if len(parts) != 3:
        raise MalformedClaims("Token must have exactly three segments.")
    header_b64, claims_b64, signature = parts

    signing_input = f"{header_b64}.{claims_b64}".encode("ascii", errors="replace")
    if not signer.verify(signing_input, signature):
        raise InvalidSignature("Token signature verification failed.")

    try:
        header = _load_segment(header_b64)
        payload = _load_segment(claims_b64)
    except (MalformedEncoding, ValueError) as error:
        raise MalformedClaims("Token segments are not valid JSON.") from error

    if not isinstance(header, dict) or header.get("alg") != ALGORITHM:
        raise UnsupportedAlgorithm("Token header names an unsupported algorithm.")
    if not isinstance(payload, dict):
        raise MalformedClaims("Token claims must be an object.")

    expires_at = payload.get("exp")
    issued_at = payload.get("iat", 0)
    if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
        raise MalformedClaims("Token claims missing exp.")
    if isinstance(issued_at, bool) or not isinstance(issued_at, (int, float)):
        raise MalformedClaims("Token claims iat must be a number.")

    current = time.time() if now is None else now
    if expires_at <= current:
        raise Expired("Token has expired.")

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise EmptySubject("Token subject is empty.")

    plan = "free" if payload.get("plan") == "free" else "dev"
    return SessionClaims(
        subject=subject,
        plan=plan,
        issued_at=int(issued_at),
        expires_at=int(expires_at),
    )


def format_expiry(claims: SessionClaims) -> str:
    moment = datetime.fromtimestamp(claims.expires_at, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"
