from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from pydantic import AnyHttpUrl, TypeAdapter, ValidationError

from auth.oauth2 import DEFAULT_TIMEOUT_SECONDS
from auth.session_token import DEFAULT_LIFETIME_SECONDS
from auth.signer import INSECURE_DEV_SECRET

from .constants import DEFAULT_HOST, DEFAULT_PORT, LOGGER

_HTTP_URL = TypeAdapter(AnyHttpUrl)


@dataclass(frozen=True)
class Settings:
    jwt_secret: str
    public_url: str
    host: str
    port: int
    github_client_id: str
    github_client_secret: str
    google_client_id: str
    google_client_secret: str
    provider_timeout: float
    session_lifetime_seconds: int

    def __repr__(self) -> str:
        return (
            f"Settings(public_url={self.public_url!r}, host={self.host!r}, "
            f"port={self.port}, github={bool(self.github_client_id)}, "
            f"google={bool(self.google_client_id)})"
        )


def is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_env_str(key: str, default: str = "") -> str:
    return os.getenv(key, default).strip()


def _get_env_int(key: str, default: int) -> int:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{key} must be an integer value.")


def _get_env_float(key: str, default: float) -> float:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{key} must be a numeric value.")


def load_env() -> None:
    env_path = Path(__file__).resolve().parent.parent / ".env"
    if not env_path.exists():
        return
    from dotenv import load_dotenv

    load_dotenv(env_path, override=False)


def resolve_signing_secret() -> str:
    secret = _get_env_str("GENERATEUI_JWT_SECRET")
    if secret:
        return secret
    if is_truthy(os.getenv("GENERATEUI_ALLOW_INSECURE_SECRET")):
        LOGGER.warning(
            "GENERATEUI_JWT_SECRET is not set; using the insecure development secret."
        )
        return INSECURE_DEV_SECRET
    raise RuntimeError(
        "GENERATEUI_JWT_SECRET is required (set GENERATEUI_ALLOW_INSECURE_SECRET=1 "
        "to use the development secret locally)."
    )


def validate_env() -> Settings:
    port = _get_env_int("PORT", DEFAULT_PORT)
    public_url = _get_env_str("API_BASE_URL") or f"http://localhost:{port}"
    try:
        _HTTP_URL.validate_python(public_url)
    except ValidationError:
        raise RuntimeError(
            "API_BASE_URL must be an absolute http(s) URL (for example: "
            "https://api.example.com)."
        )

    provider_timeout = _get_env_float("GENERATEUI_PROVIDER_TIMEOUT", DEFAULT_TIMEOUT_SECONDS)
    if provider_timeout <= 0:
        raise RuntimeError("GENERATEUI_PROVIDER_TIMEOUT must be positive.")
    session_lifetime = _get_env_int("GENERATEUI_SESSION_LIFETIME", DEFAULT_LIFETIME_SECONDS)
    if session_lifetime <= 0:
        raise RuntimeError("GENERATEUI_SESSION_LIFETIME must be positive.")

    settings = Settings(
        jwt_secret=resolve_signing_secret(),
        public_url=public_url.rstrip("/"),
        host=_get_env_str("HOST", DEFAULT_HOST),
        port=port,
        github_client_id=_get_env_str("GITHUB_CLIENT_ID"),
        github_client_secret=_get_env_str("GITHUB_CLIENT_SECRET"),
        google_client_id=_get_env_str("GOOGLE_CLIENT_ID"),
        google_client_secret=_get_env_str("GOOGLE_CLIENT_SECRET"),
        provider_timeout=provider_timeout,
        session_lifetime_seconds=session_lifetime,
    )

    for name, client_id, client_secret in (
        ("GitHub", settings.github_client_id, settings.github_client_secret),
        ("Google", settings.google_client_id, settings.google_client_secret),
    ):
        if not (client_id and client_secret):
            LOGGER.warning("%s OAuth is not configured; its login route will return 500.", name)

    return settings


def setup_logging() -> bool:
    debug_enabled = is_truthy(os.getenv("GENERATEUI_DEBUG", "1"))
    if debug_enabled:
        logging.basicConfig(level=logging.INFO)
        LOGGER.setLevel(logging.INFO)
    return debug_enabled
