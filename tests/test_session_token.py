import json
import time

import pytest

from auth import codec, session_token
from auth.errors import (
    EmptySubject,
    Expired,
    InvalidSignature,
    MalformedClaims,
    UnsupportedAlgorithm,
)
from auth.models import SessionClaims

DAY = 24 * 60 * 60


def _signed(signer, header: dict, claims: dict) -> str:
    header_b64 = codec.encode(json.dumps(header).encode())
    claims_b64 = codec.encode(json.dumps(claims).encode())
    signature = signer.sign(f"{header_b64}.{claims_b64}".encode())
    return f"{header_b64}.{claims_b64}.{signature}"


def _alter(token: str, segment: int) -> str:
    parts = token.split(".")
    value = parts[segment]
    parts[segment] = value[:-1] + ("A" if value[-1] != "A" else "B")
    return ".".join(parts)


def test_issue_then_verify(signer) -> None:
    token, claims = session_token.issue("github:12345", "dev", signer)

    verified = session_token.verify(token, signer)

    assert verified == claims
    assert verified.subject == "github:12345"
    assert verified.plan == "dev"


def test_expiry_is_issued_at_plus_thirty_days(signer) -> None:
    _, claims = session_token.issue("github:1", "free", signer, now=1_700_000_000)

    assert claims.issued_at == 1_700_000_000
    assert claims.expires_at == 1_700_000_000 + 30 * DAY


def test_token_shape(signer) -> None:
    token, _ = session_token.issue("google:abc", "dev", signer)
    header_b64, claims_b64, _ = token.split(".")

    assert json.loads(codec.decode(header_b64)) == {"alg": "HS256", "typ": "JWT"}
    assert set(json.loads(codec.decode(claims_b64))) == {"sub", "plan", "iat", "exp"}


def test_rejects_expired_token_with_valid_signature(signer) -> None:
    token, _ = session_token.issue(
        "github:1", "dev", signer, lifetime_seconds=60, now=time.time() - 10 * DAY
    )

    with pytest.raises(Expired):
        session_token.verify(token, signer)


def test_expiry_boundary_is_exclusive(signer) -> None:
    token, claims = session_token.issue("github:1", "dev", signer, now=1_000)

    with pytest.raises(Expired):
        session_token.verify(token, signer, now=claims.expires_at)
    assert session_token.verify(token, signer, now=claims.expires_at - 1) == claims


@pytest.mark.parametrize("segment", [0, 1, 2])
def test_rejects_altered_segment(signer, segment: int) -> None:
    token, _ = session_token.issue("github:1", "dev", signer)

    with pytest.raises(InvalidSignature):
        session_token.verify(_alter(token, segment), signer)


@pytest.mark.parametrize("token", ["", "a.b", "a.b.c.d"])
def test_rejects_wrong_segment_count(signer, token: str) -> None:
    with pytest.raises(MalformedClaims):
        session_token.verify(token, signer)


def test_rejects_empty_subject(signer) -> None:
    token = _signed(
        signer,
        session_token.HEADER,
        {"sub": "", "plan": "dev", "iat": 1, "exp": time.time() + 60},
    )

    with pytest.raises(EmptySubject):
        session_token.verify(token, signer)


def test_rejects_missing_exp(signer) -> None:
    token = _signed(signer, session_token.HEADER, {"sub": "github:1", "plan": "dev"})

    with pytest.raises(MalformedClaims):
        session_token.verify(token, signer)


def test_rejects_other_algorithm_even_when_signed(signer) -> None:
    token = _signed(
        signer,
        {"alg": "none", "typ": "JWT"},
        {"sub": "github:1", "plan": "dev", "iat": 1, "exp": time.time() + 60},
    )

    with pytest.raises(UnsupportedAlgorithm):
        session_token.verify(token, signer)


def test_unknown_plan_is_read_as_dev(signer) -> None:
    token = _signed(
        signer,
        session_token.HEADER,
        {"sub": "github:1", "plan": "enterprise", "iat": 1, "exp": time.time() + 60},
    )

    assert session_token.verify(token, signer).plan == "dev"


def test_issue_rejects_unknown_plan(signer) -> None:
    with pytest.raises(ValueError):
        session_token.issue("github:1", "enterprise", signer)


def test_format_expiry() -> None:
    claims = SessionClaims(subject="s", plan="dev", issued_at=0, expires_at=1_700_000_000)

    assert session_token.format_expiry(claims) == "2023-11-14T22:13:20.000Z"
