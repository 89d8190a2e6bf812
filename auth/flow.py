from __future__ import annotations

from collections.abc import Mapping

from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response
from starlette.routing import Route

from auth import oauth2, session_token, state_token
from auth.errors import (
    AuthError,
    InvalidAuthResponse,
    InvalidCallback,
    InvalidRedirectUri,
    MissingRedirectUri,
    ProviderNotConfigured,
    UnknownProvider,
    UpstreamError,
    VerificationError,
)
from auth.models import AuthorizationRequest
from auth.providers import ProviderAdapter
from auth.signer import Signer
from auth.urls import append_query_params, is_absolute_uri
from genui.constants import LOGGER

DEFAULT_PLAN = "dev"


class AuthFlowController:
    """Initiate and callback legs of the login flow.

    Nothing is kept between the two legs: the PKCE verifier, nonce and the
    caller's redirect target travel inside the signed ``state`` parameter.
    """

    def __init__(
        self,
        *,
        public_url: str,
        signer: Signer,
        providers: Mapping[str, ProviderAdapter],
        session_lifetime_seconds: int = session_token.DEFAULT_LIFETIME_SECONDS,
    ) -> None:
        self.public_url = public_url.rstrip("/")
        self.signer = signer
        self.providers = dict(providers)
        self.session_lifetime_seconds = session_lifetime_seconds

    def callback_url(self, provider: str) -> str:
        return f"{self.public_url}/auth/{provider}/callback"

    def routes(self) -> list[Route]:
        return [
            Route("/auth/{provider}", self._handle_initiate, methods=["GET"]),
            Route("/auth/{provider}/callback", self._handle_callback, methods=["GET"]),
        ]

    # -- flow ------------------------------------------------------------------

    def _get_provider(self, name: str) -> ProviderAdapter:
        provider = self.providers.get(name)
        if provider is None:
            raise UnknownProvider(f"Unknown provider: {name}")
        return provider

    def begin(self, provider_name: str, redirect_uri: str | None) -> str:
        """Return the provider authorization URL for a new flow."""
        provider = self._get_provider(provider_name)
        if not redirect_uri:
            raise MissingRedirectUri("redirect_uri required")
        if not is_absolute_uri(redirect_uri):
            raise InvalidRedirectUri("redirect_uri must be an absolute URI")
        if not provider.is_configured:
            raise ProviderNotConfigured(f"{provider.display_name} OAuth not configured")

        code_verifier = oauth2.generate_code_verifier()
        request_state = AuthorizationRequest(
            provider=provider.name,
            redirect_uri=redirect_uri,
            code_verifier=code_verifier,
            anti_replay=oauth2.generate_state(),
            nonce=oauth2.generate_nonce() if provider.uses_nonce else None,
        )
        return provider.build_authorization_url(
            request_state,
            oauth2.generate_code_challenge(code_verifier),
            signed_state=state_token.create(request_state, self.signer),
            redirect_uri=self.callback_url(provider.name),
        )

    async def complete(self, provider_name: str, params: Mapping[str, str]) -> str:
        """Verify the callback, exchange the code, and return the final redirect URL."""
        provider = self._get_provider(provider_name)
        signed_state = params.get("state") or ""

        try:
            request_state = state_token.parse(signed_state, self.signer)
        except VerificationError as error:
            raise InvalidCallback("Invalid callback") from error
        if request_state.provider != provider.name:
            raise InvalidCallback("Invalid callback")

        oauth2.validate_auth_response(
            params,
            expected_state=signed_state,
            issuer=provider.issuer,
        )
        if not provider.is_configured:
            raise ProviderNotConfigured(f"{provider.display_name} OAuth not configured")

        identity = await provider.exchange_code(
            params,
            request_state.code_verifier,
            self.callback_url(provider.name),
            nonce=request_state.nonce,
        )
        token, claims = session_token.issue(
            identity.subject,
            DEFAULT_PLAN,
            self.signer,
            lifetime_seconds=self.session_lifetime_seconds,
        )
        LOGGER.info("Issued session token for %s", identity.subject)

        return append_query_params(
            request_state.redirect_uri,
            {
                "access_token": token,
                "expires_at": session_token.format_expiry(claims),
            },
        )

    # -- handlers --------------------------------------------------------------

    async def _handle_initiate(self, request: Request) -> Response:
        provider_name = request.path_params["provider"]
        redirect_uri = request.query_params.get("redirect_uri")

        try:
            location = self.begin(provider_name, redirect_uri)
        except UnknownProvider as error:
            return self._error("Unknown provider", error)
        except (MissingRedirectUri, InvalidRedirectUri) as error:
            return self._error("redirect_uri required", error)
        except ProviderNotConfigured as error:
            LOGGER.warning("Login attempted for unconfigured provider %s", provider_name)
            return self._error(str(error), error)

        LOGGER.info("Starting %s login", provider_name)
        return RedirectResponse(url=location, status_code=302)

    async def _handle_callback(self, request: Request) -> Response:
        provider_name = request.path_params["provider"]
        params = dict(request.query_params)

        try:
            location = await self.complete(provider_name, params)
        except UnknownProvider as error:
            return self._error("Unknown provider", error)
        except InvalidCallback as error:
            LOGGER.warning(
                "Rejected %s callback: %s",
                provider_name,
                error.__cause__.__class__.__name__ if error.__cause__ else "provider mismatch",
            )
            return self._error("Invalid callback", error)
        except InvalidAuthResponse as error:
            LOGGER.warning("Rejected %s auth response: %s", provider_name, error)
            return self._error("Invalid auth response", error)
        except ProviderNotConfigured as error:
            return self._error(str(error), error)
        except UpstreamError as error:
            LOGGER.warning(
                "%s code exchange failed: %s (cause: %r)",
                provider_name,
                error,
                error.__cause__,
            )
            return self._error("OAuth failed", error)

        return RedirectResponse(url=location, status_code=302)

    # -- helpers ---------------------------------------------------------------

    def _error(self, message: str, error: AuthError) -> Response:
        return JSONResponse({"error": message}, status_code=error.status_code)
