from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from blog_backend.auth import TokenIssuer
from blog_backend.errors import VerificationError, VerificationFailure


CLAIMS = {"sub": "1", "username": "gyu"}


def _flip(token: str, index: int) -> str:
    replacement = "A" if token[index] != "A" else "B"
    return token[:index] + replacement + token[index + 1 :]


def _reason(issuer: TokenIssuer, token: str) -> VerificationFailure:
    with pytest.raises(VerificationError) as excinfo:
        issuer.verify(token)
    return excinfo.value.reason


def test_issue_then_verify_returns_claims(issuer: TokenIssuer) -> None:
    token = issuer.issue(CLAIMS, timedelta(minutes=5))
    decoded = issuer.verify(token)

    assert {k: decoded[k] for k in CLAIMS} == CLAIMS
    assert decoded["exp"] - decoded["iat"] == 300


def test_default_ttl_is_seven_days(issuer: TokenIssuer) -> None:
    decoded = issuer.verify(issuer.issue(CLAIMS))
    assert decoded["exp"] - decoded["iat"] == 7 * 24 * 60 * 60


def test_expired_token(issuer: TokenIssuer) -> None:
    two_days_ago = datetime.now(timezone.utc) - timedelta(days=2)
    token = issuer.issue(CLAIMS, timedelta(days=1), now=two_days_ago)

    assert _reason(issuer, token) is VerificationFailure.EXPIRED


def test_expired_forgery_reports_bad_signature(issuer: TokenIssuer) -> None:
    two_days_ago = datetime.now(timezone.utc) - timedelta(days=2)
    token = issuer.issue(CLAIMS, timedelta(days=1), now=two_days_ago)
    header, payload, signature = token.split(".")
    forged = ".".join([header, payload, _flip(signature, 5)])

    assert _reason(issuer, forged) is VerificationFailure.BAD_SIGNATURE


@pytest.mark.parametrize("segment", [0, 1, 2])
def test_flipped_byte_in_any_segment_is_bad_signature(issuer: TokenIssuer, segment: int) -> None:
    token = issuer.issue(CLAIMS, timedelta(minutes=5))
    parts = token.split(".")
    # Stay away from the last character: its low bits may be padding.
    parts[segment] = _flip(parts[segment], len(parts[segment]) // 2)

    assert _reason(issuer, ".".join(parts)) is VerificationFailure.BAD_SIGNATURE


@pytest.mark.parametrize("which", ["first", "second"])
def test_replaced_separator_is_bad_signature(issuer: TokenIssuer, which: str) -> None:
    token = issuer.issue(CLAIMS, timedelta(minutes=5))
    index = token.index(".") if which == "first" else token.rindex(".")

    assert _reason(issuer, token[:index] + "A" + token[index + 1 :]) is VerificationFailure.BAD_SIGNATURE


def test_every_signature_position_is_checked(issuer: TokenIssuer) -> None:
    token = issuer.issue(CLAIMS, timedelta(minutes=5))
    header, payload, signature = token.split(".")
    for i in range(len(signature) - 1):
        forged = ".".join([header, payload, _flip(signature, i)])
        assert _reason(issuer, forged) is VerificationFailure.BAD_SIGNATURE


def test_token_from_other_secret_is_bad_signature(issuer: TokenIssuer) -> None:
    other = TokenIssuer(secret="another-secret-key-that-is-also-long-enough")
    token = other.issue(CLAIMS, timedelta(minutes=5))

    assert _reason(issuer, token) is VerificationFailure.BAD_SIGNATURE


def test_unsigned_token_is_rejected(issuer: TokenIssuer) -> None:
    token = jwt.encode({**CLAIMS, "iat": 0, "exp": 4102444800}, None, algorithm="none")

    with pytest.raises(VerificationError):
        issuer.verify(token)


@pytest.mark.parametrize("token", ["", "garbage", "a.b", "..", "a.b.c.d"])
def test_unparseable_token_is_malformed(issuer: TokenIssuer, token: str) -> None:
    assert _reason(issuer, token) is VerificationFailure.MALFORMED


def test_token_without_expiry_is_malformed() -> None:
    secret = "a-secret-key-used-only-by-this-test-case"
    token = jwt.encode(dict(CLAIMS), secret, algorithm="HS256")
    assert _reason(TokenIssuer(secret=secret), token) is VerificationFailure.MALFORMED


def test_blank_secret_is_refused() -> None:
    with pytest.raises(ValueError):
        TokenIssuer(secret="")
