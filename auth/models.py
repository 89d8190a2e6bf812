from __future__ import annotations

from dataclasses import dataclass

PROVIDERS = ("github", "google")
PLANS = ("free", "dev")


@dataclass(frozen=True)
class AuthorizationRequest:
    """Flow-scoped values carried inside the signed ``state`` parameter."""

    provider: str
    redirect_uri: str
    code_verifier: str
    anti_replay: str
    nonce: str | None = None

    def to_payload(self) -> dict:
        payload = {
            "provider": self.provider,
            "redirectUri": self.redirect_uri,
            "codeVerifier": self.code_verifier,
            "state": self.anti_replay,
        }
        if self.nonce is not None:
            payload["nonce"] = self.nonce
        return payload

    @classmethod
    def from_payload(cls, payload: object) -> "AuthorizationRequest":
        if not isinstance(payload, dict):
            raise ValueError("State payload must be an object.")

        provider = payload.get("provider")
        redirect_uri = payload.get("redirectUri")
        code_verifier = payload.get("codeVerifier")
        anti_replay = payload.get("state", "")
        nonce = payload.get("nonce")

        if provider not in PROVIDERS:
            raise ValueError("State payload has an unknown provider.")
        if not isinstance(redirect_uri, str) or not redirect_uri:
            raise ValueError("State payload missing redirectUri.")
        if not isinstance(code_verifier, str) or not code_verifier:
            raise ValueError("State payload missing codeVerifier.")
        if not isinstance(anti_replay, str):
            raise ValueError("State payload state must be a string.")
        if nonce is not None and not isinstance(nonce, str):
            raise ValueError("State payload nonce must be a string.")

        return cls(
            provider=provider,
            redirect_uri=redirect_uri,
            code_verifier=code_verifier,
            anti_replay=anti_replay,
            nonce=nonce,
        )


@dataclass(frozen=True)
class SessionClaims:
    subject: str
    plan: str
    issued_at: int
    expires_at: int

    def to_payload(self) -> dict:
        return {
            "sub": self.subject,
            "plan": self.plan,
            "iat": self.issued_at,
            "exp": self.expires_at,
        }


@dataclass(frozen=True)
class ProviderIdentity:
    provider: str
    user_id: str | None

    @property
    def subject(self) -> str:
        return f"{self.provider}:{self.user_id or 'unknown'}"
