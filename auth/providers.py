"""Identity-provider variants behind one capability interface.

Each adapter knows its endpoints, scopes, and how to turn a token-endpoint
response into a provider-qualified identity. PKCE and state plumbing is shared
and lives in the flow controller.
"""

from __future__ import annotations

import urllib.parse
from abc import ABC, abstractmethod
from collections.abc import Mapping

import httpx

from auth import oauth2
from auth.errors import ExchangeFailed, MissingIdToken
from auth.models import AuthorizationRequest, ProviderIdentity

GITHUB_ISSUER = "https://github.com"
GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_USER_URL = "https://api.github.com/user"

GOOGLE_ISSUER = "https://accounts.google.com"
GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"

USER_AGENT = "GenerateUI"


class ProviderAdapter(ABC):
    name: str
    display_name: str
    issuer: str
    authorize_url: str
    token_url: str
    scopes: tuple[str, ...]
    uses_nonce = False

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = oauth2.DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self._http_client = http_client

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def authorization_params(
        self,
        state: AuthorizationRequest,
        code_challenge: str,
        *,
        signed_state: str,
        redirect_uri: str,
    ) -> dict[str, str]:
        return {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "scope": " ".join(self.scopes),
            "state": signed_state,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
        }

    def build_authorization_url(
        self,
        state: AuthorizationRequest,
        code_challenge: str,
        *,
        signed_state: str,
        redirect_uri: str,
    ) -> str:
        params = self.authorization_params(
            state,
            code_challenge,
            signed_state=signed_state,
            redirect_uri=redirect_uri,
        )
        return f"{self.authorize_url}?{urllib.parse.urlencode(params)}"

    async def _exchange(
        self, code: str, code_verifier: str, redirect_uri: str
    ) -> oauth2.TokenResponse:
        return await oauth2.exchange_code(
            self.token_url,
            client_id=self.client_id,
            client_secret=self.client_secret,
            code=code,
            redirect_uri=redirect_uri,
            code_verifier=code_verifier,
            client=self._http_client,
            timeout=self.timeout,
        )

    @abstractmethod
    async def exchange_code(
        self,
        params: Mapping[str, str],
        code_verifier: str,
        redirect_uri: str,
        *,
        nonce: str | None = None,
    ) -> ProviderIdentity:
        raise NotImplementedError


class GitHubProvider(ProviderAdapter):
    name = "github"
    display_name = "GitHub"
    issuer = GITHUB_ISSUER
    authorize_url = GITHUB_AUTHORIZE_URL
    token_url = GITHUB_TOKEN_URL
    scopes = ("read:user", "user:email")

    async def exchange_code(
        self,
        params: Mapping[str, str],
        code_verifier: str,
        redirect_uri: str,
        *,
        nonce: str | None = None,
    ) -> ProviderIdentity:
        del nonce
        tokens = await self._exchange(params["code"], code_verifier, redirect_uri)
        user = await oauth2.request_json(
            "GET",
            GITHUB_USER_URL,
            client=self._http_client,
            timeout=self.timeout,
            headers={
                "Authorization": f"Bearer {tokens.access_token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": USER_AGENT,
            },
        )
        if not isinstance(user, dict):
            raise ExchangeFailed("GitHub user response is not a JSON object.")

        # A missing id still yields "github:unknown" rather than failing the flow.
        user_id = user.get("id")
        return ProviderIdentity(
            provider=self.name,
            user_id=str(user_id) if user_id else None,
        )


class GoogleProvider(ProviderAdapter):
    name = "google"
    display_name = "Google"
    issuer = GOOGLE_ISSUER
    authorize_url = GOOGLE_AUTHORIZE_URL
    token_url = GOOGLE_TOKEN_URL
    scopes = ("openid", "email", "profile")
    uses_nonce = True

    def authorization_params(
        self,
        state: AuthorizationRequest,
        code_challenge: str,
        *,
        signed_state: str,
        redirect_uri: str,
    ) -> dict[str, str]:
        params = super().authorization_params(
            state,
            code_challenge,
            signed_state=signed_state,
            redirect_uri=redirect_uri,
        )
        params["response_type"] = "code"
        if state.nonce:
            params["nonce"] = state.nonce
        return params

    async def exchange_code(
        self,
        params: Mapping[str, str],
        code_verifier: str,
        redirect_uri: str,
        *,
        nonce: str | None = None,
    ) -> ProviderIdentity:
        tokens = await self._exchange(params["code"], code_verifier, redirect_uri)
        if not tokens.id_token:
            raise MissingIdToken("Google token response missing id_token.")

        # TODO: verify the ID token signature against Google's JWKS. Claims are
        # currently trusted on the strength of the TLS connection to the token
        # endpoint alone.
        claims = oauth2.decode_jwt_claims(tokens.id_token)
        oauth2.validate_id_token_claims(
            claims,
            issuer=self.issuer,
            client_id=self.client_id,
            expected_nonce=nonce,
        )

        subject = claims.get("sub")
        return ProviderIdentity(
            provider=self.name,
            user_id=subject if isinstance(subject, str) and subject else None,
        )


PROVIDER_CLASSES: dict[str, type[ProviderAdapter]] = {
    GitHubProvider.name: GitHubProvider,
    GoogleProvider.name: GoogleProvider,
}
