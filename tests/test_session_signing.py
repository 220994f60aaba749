from __future__ import annotations

from formwizard.storage.session_signing import SignedSessionManager, new_session_id


def test_issue_and_consume_round_trip() -> None:
    signer = SignedSessionManager(secret="s3cret", ttl_seconds=600)
    session_id = new_session_id()

    token = signer.issue(session_id, now=1_000)
    signed = signer.consume(token, now=1_100)

    assert signed is not None
    assert signed.session_id == session_id
    assert signed.issued_at == 1_000


def test_tampered_token_rejected() -> None:
    signer = SignedSessionManager(secret="s3cret")
    token = signer.issue("abcdefgh12345678", now=1_000)
    session_id, issued_at, signature = token.split(":")

    assert signer.consume(f"zzzzzzzz12345678:{issued_at}:{signature}", now=1_000) is None
    assert SignedSessionManager(secret="other").consume(token, now=1_000) is None


def test_expired_token_rejected() -> None:
    signer = SignedSessionManager(secret="s3cret", ttl_seconds=60)
    token = signer.issue("abcdefgh12345678", now=1_000)

    assert signer.consume(token, now=1_061) is None


def test_malformed_tokens_rejected() -> None:
    signer = SignedSessionManager(secret="s3cret")

    assert signer.consume("garbage", now=1_000) is None
    assert signer.consume("abcdefgh12345678:notanumber:sig", now=1_000) is None
    assert signer.consume("../bad:1000:sig", now=1_000) is None


def test_new_session_ids_are_unique_and_safe() -> None:
    ids = {new_session_id() for _ in range(20)}

    assert len(ids) == 20
    assert all(":" not in value and len(value) >= 8 for value in ids)
