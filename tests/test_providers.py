import pytest

from auth.errors import ExchangeFailed, IdTokenValidationFailed, MissingIdToken
from auth.models import AuthorizationRequest
from auth.providers import (
    GITHUB_AUTHORIZE_URL,
    GITHUB_TOKEN_URL,
    GITHUB_USER_URL,
    GOOGLE_AUTHORIZE_URL,
    GOOGLE_TOKEN_URL,
    GitHubProvider,
    GoogleProvider,
)
from tests.auth_helpers import _make_id_token, _query

CALLBACK = "https://api.generateui.example/auth/{}/callback"


def _request(provider: str, nonce: str | None = None) -> AuthorizationRequest:
    return AuthorizationRequest(
        provider=provider,
        redirect_uri="https://app.example/callback",
        code_verifier="v" * 50,
        anti_replay="anti",
        nonce=nonce,
    )


def test_github_authorization_url() -> None:
    provider = GitHubProvider("gh-client", "gh-secret")

    url = provider.build_authorization_url(
        _request("github"),
        "challenge-123",
        signed_state="body.sig",
        redirect_uri=CALLBACK.format("github"),
    )

    assert url.startswith(GITHUB_AUTHORIZE_URL + "?")
    query = _query(url)
    assert query == {
        "client_id": "gh-client",
        "redirect_uri": CALLBACK.format("github"),
        "scope": "read:user user:email",
        "state": "body.sig",
        "code_challenge": "challenge-123",
        "code_challenge_method": "S256",
    }


def test_google_authorization_url_includes_nonce() -> None:
    provider = GoogleProvider("google-client", "google-secret")

    url = provider.build_authorization_url(
        _request("google", nonce="nonce-1"),
        "challenge-123",
        signed_state="body.sig",
        redirect_uri=CALLBACK.format("google"),
    )

    assert url.startswith(GOOGLE_AUTHORIZE_URL + "?")
    query = _query(url)
    assert query["response_type"] == "code"
    assert query["scope"] == "openid email profile"
    assert query["nonce"] == "nonce-1"
    assert query["code_challenge_method"] == "S256"


def test_google_authorization_url_without_nonce() -> None:
    provider = GoogleProvider("google-client", "google-secret")

    url = provider.build_authorization_url(
        _request("google"),
        "challenge",
        signed_state="s.s",
        redirect_uri=CALLBACK.format("google"),
    )

    assert "nonce" not in _query(url)


def test_is_configured() -> None:
    assert GitHubProvider("id", "secret").is_configured is True
    assert GitHubProvider("id", "").is_configured is False
    assert GoogleProvider("", "secret").is_configured is False


@pytest.mark.asyncio
async def test_github_exchange_resolves_user_id(httpx_mock) -> None:
    httpx_mock.add_response(
        url=GITHUB_TOKEN_URL,
        method="POST",
        json={"access_token": "gh-access", "token_type": "bearer", "scope": "read:user"},
    )
    httpx_mock.add_response(url=GITHUB_USER_URL, method="GET", json={"id": 12345})

    identity = await GitHubProvider("gh-client", "gh-secret").exchange_code(
        {"code": "code-1", "state": "s"},
        "verifier-1",
        CALLBACK.format("github"),
    )

    assert identity.subject == "github:12345"
    user_request = httpx_mock.get_request(url=GITHUB_USER_URL)
    assert user_request.headers["authorization"] == "Bearer gh-access"
    assert user_request.headers["user-agent"] == "GenerateUI"


@pytest.mark.asyncio
async def test_github_missing_id_is_unknown(httpx_mock) -> None:
    httpx_mock.add_response(
        url=GITHUB_TOKEN_URL,
        method="POST",
        json={"access_token": "gh-access", "token_type": "bearer"},
    )
    httpx_mock.add_response(url=GITHUB_USER_URL, method="GET", json={"login": "octocat"})

    identity = await GitHubProvider("gh-client", "gh-secret").exchange_code(
        {"code": "code-1"},
        "verifier-1",
        CALLBACK.format("github"),
    )

    assert identity.subject == "github:unknown"


@pytest.mark.asyncio
async def test_github_error_in_200_response(httpx_mock) -> None:
    httpx_mock.add_response(
        url=GITHUB_TOKEN_URL,
        method="POST",
        json={"error": "bad_verification_code"},
    )

    with pytest.raises(ExchangeFailed):
        await GitHubProvider("gh-client", "gh-secret").exchange_code(
            {"code": "stale"},
            "verifier-1",
            CALLBACK.format("github"),
        )


@pytest.mark.asyncio
async def test_github_user_endpoint_failure(httpx_mock) -> None:
    httpx_mock.add_response(
        url=GITHUB_TOKEN_URL,
        method="POST",
        json={"access_token": "gh-access", "token_type": "bearer"},
    )
    httpx_mock.add_response(url=GITHUB_USER_URL, method="GET", status_code=502)

    with pytest.raises(ExchangeFailed, match="502"):
        await GitHubProvider("gh-client", "gh-secret").exchange_code(
            {"code": "code-1"},
            "verifier-1",
            CALLBACK.format("github"),
        )


@pytest.mark.asyncio
async def test_google_exchange_resolves_subject(httpx_mock) -> None:
    httpx_mock.add_response(
        url=GOOGLE_TOKEN_URL,
        method="POST",
        json={
            "access_token": "g-access",
            "token_type": "Bearer",
            "id_token": _make_id_token(sub="108", nonce="nonce-1"),
        },
    )

    identity = await GoogleProvider("google-client", "google-secret").exchange_code(
        {"code": "code-1"},
        "verifier-1",
        CALLBACK.format("google"),
        nonce="nonce-1",
    )

    assert identity.subject == "google:108"


@pytest.mark.asyncio
async def test_google_missing_sub_is_unknown(httpx_mock) -> None:
    httpx_mock.add_response(
        url=GOOGLE_TOKEN_URL,
        method="POST",
        json={
            "access_token": "g-access",
            "token_type": "Bearer",
            "id_token": _make_id_token(sub=None, nonce="nonce-1"),
        },
    )

    identity = await GoogleProvider("google-client", "google-secret").exchange_code(
        {"code": "code-1"},
        "verifier-1",
        CALLBACK.format("google"),
        nonce="nonce-1",
    )

    assert identity.subject == "google:unknown"


@pytest.mark.asyncio
async def test_google_requires_id_token(httpx_mock) -> None:
    httpx_mock.add_response(
        url=GOOGLE_TOKEN_URL,
        method="POST",
        json={"access_token": "g-access", "token_type": "Bearer"},
    )

    with pytest.raises(MissingIdToken):
        await GoogleProvider("google-client", "google-secret").exchange_code(
            {"code": "code-1"},
            "verifier-1",
            CALLBACK.format("google"),
            nonce="nonce-1",
        )


@pytest.mark.asyncio
async def test_google_nonce_mismatch(httpx_mock) -> None:
    httpx_mock.add_response(
        url=GOOGLE_TOKEN_URL,
        method="POST",
        json={
            "access_token": "g-access",
            "token_type": "Bearer",
            "id_token": _make_id_token(nonce="replayed-nonce"),
        },
    )

    with pytest.raises(IdTokenValidationFailed):
        await GoogleProvider("google-client", "google-secret").exchange_code(
            {"code": "code-1"},
            "verifier-1",
            CALLBACK.format("google"),
            nonce="nonce-1",
        )
