from __future__ import annotations

import base64
import hashlib
import hmac
import json
import secrets
import time
from collections.abc import Mapping
from dataclasses import dataclass

import httpx

from auth import codec
from auth.errors import (
    ExchangeFailed,
    IdTokenValidationFailed,
    InvalidAuthResponse,
    MalformedEncoding,
)

DEFAULT_TIMEOUT_SECONDS = 5.0
CLOCK_SKEW_SECONDS = 30
IMPLICIT_RESPONSE_PARAMS = ("id_token", "token", "access_token")


@dataclass
class TokenResponse:
    access_token: str
    token_type: str
    scope: str
    id_token: str | None = None

    @classmethod
    def from_payload(cls, payload: object) -> "TokenResponse":
        if not isinstance(payload, dict):
            raise ExchangeFailed("Token response is not a JSON object.")
        if payload.get("error"):
            raise ExchangeFailed(f"Token endpoint returned error: {payload['error']}")

        access_token = payload.get("access_token")
        token_type = payload.get("token_type", "bearer")
        scope = payload.get("scope", "")
        id_token = payload.get("id_token")

        if not isinstance(access_token, str) or not access_token:
            raise ExchangeFailed("Token response missing access_token.")
        if not isinstance(token_type, str) or token_type.lower() != "bearer":
            raise ExchangeFailed("Token response token_type must be bearer.")
        if not isinstance(scope, str):
            raise ExchangeFailed("Token response scope must be a string.")
        if id_token is not None and not isinstance(id_token, str):
            raise ExchangeFailed("Token response id_token must be a string.")

        return cls(
            access_token=access_token,
            token_type=token_type,
            scope=scope,
            id_token=id_token or None,
        )


def _constant_time_equals(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def generate_code_verifier() -> str:
    while True:
        verifier = secrets.token_urlsafe(48)
        if 43 <= len(verifier) <= 128:
            return verifier


def generate_code_challenge(verifier: str) -> str:
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def generate_nonce() -> str:
    return secrets.token_urlsafe(32)


def generate_state() -> str:
    return secrets.token_urlsafe(32)


def validate_auth_response(
    params: Mapping[str, str],
    *,
    expected_state: str,
    issuer: str,
) -> str:
    """Check the provider's redirect parameters and return the authorization code."""
    if params.get("error"):
        raise InvalidAuthResponse(f"Provider returned error: {params['error']}")
    if any(key in params for key in IMPLICIT_RESPONSE_PARAMS):
        raise InvalidAuthResponse("Unexpected implicit-flow parameters in callback.")

    state = params.get("state")
    if state is None or not _constant_time_equals(state, expected_state):
        raise InvalidAuthResponse("Callback state does not match.")

    iss = params.get("iss")
    if iss is not None and iss != issuer:
        raise InvalidAuthResponse("Callback iss does not match provider issuer.")

    code = params.get("code")
    if not code:
        raise InvalidAuthResponse("Callback missing code.")
    return code


def decode_jwt_claims(token: str) -> dict:
    """Return the claims segment of a JWT without verifying its signature."""
    parts = token.split(".")
    if len(parts) != 3:
        raise IdTokenValidationFailed("ID token must have three segments.")
    try:
        claims = json.loads(codec.decode(parts[1]))
    except (MalformedEncoding, ValueError) as error:
        raise IdTokenValidationFailed("ID token claims are malformed.") from error
    if not isinstance(claims, dict):
        raise IdTokenValidationFailed("ID token claims must be an object.")
    return claims


def validate_id_token_claims(
    claims: dict,
    *,
    issuer: str,
    client_id: str,
    expected_nonce: str | None,
    now: float | None = None,
) -> None:
    current = time.time() if now is None else now

    if claims.get("iss") != issuer:
        raise IdTokenValidationFailed("ID token issuer mismatch.")

    audience = claims.get("aud")
    if isinstance(audience, str):
        audience = [audience]
    if not isinstance(audience, list) or client_id not in audience:
        raise IdTokenValidationFailed("ID token audience mismatch.")

    expires_at = claims.get("exp")
    if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
        raise IdTokenValidationFailed("ID token missing exp.")
    if expires_at + CLOCK_SKEW_SECONDS <= current:
        raise IdTokenValidationFailed("ID token has expired.")

    nonce = claims.get("nonce")
    if expected_nonce is None:
        if nonce is not None:
            raise IdTokenValidationFailed("ID token carries an unexpected nonce.")
    elif not isinstance(nonce, str) or not _constant_time_equals(nonce, expected_nonce):
        raise IdTokenValidationFailed("ID token nonce mismatch.")


async def request_json(
    method: str,
    url: str,
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    **kwargs,
) -> object:
    """Single round trip, no retries. Every failure surfaces as ExchangeFailed."""
    own_client = client is None
    http_client = client or httpx.AsyncClient()

    try:
        response = await http_client.request(method, url, timeout=timeout, **kwargs)
        response.raise_for_status()
        return response.json()
    except httpx.HTTPStatusError as error:
        raise ExchangeFailed(
            f"{method} {url} failed with status {error.response.status_code}"
        ) from error
    except httpx.HTTPError as error:
        raise ExchangeFailed(f"{method} {url} failed: {error.__class__.__name__}") from error
    except ValueError as error:
        raise ExchangeFailed(f"{method} {url} returned invalid JSON") from error
    finally:
        if own_client:
            await http_client.aclose()


async def exchange_code(
    token_url: str,
    *,
    client_id: str,
    client_secret: str,
    code: str,
    redirect_uri: str,
    code_verifier: str,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> TokenResponse:
    payload = await request_json(
        "POST",
        token_url,
        client=client,
        timeout=timeout,
        data={
            "grant_type": "authorization_code",
            "client_id": client_id,
            "client_secret": client_secret,
            "code": code,
            "redirect_uri": redirect_uri,
            "code_verifier": code_verifier,
        },
        headers={"Accept": "application/json"},
    )
    return TokenResponse.from_payload(payload)
