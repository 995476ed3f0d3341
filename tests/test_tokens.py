from datetime import timedelta

import pytest
from jose import JWTError

from vidtube.security.password import hash_password, verify_password
from vidtube.security.tokens import JWTSettings, decode_token, mint_token_pair

SETTINGS = JWTSettings(secret="test-secret", issuer="vidtube-tests")


def test_pair_carries_subject_and_type():
    pair = mint_token_pair(user_id=7, username="alice", settings=SETTINGS)

    access = decode_token(pair["access_token"], SETTINGS)
    refresh = decode_token(pair["refresh_token"], SETTINGS)

    assert access["sub"] == "7"
    assert access["username"] == "alice"
    assert access["typ"] == "access"
    assert refresh["typ"] == "refresh"
    assert access["jti"] != refresh["jti"]
    assert pair["expires_in"] == 15 * 60


def test_two_pairs_never_share_a_refresh_token():
    first = mint_token_pair(user_id=1, username="a", settings=SETTINGS)
    second = mint_token_pair(user_id=1, username="a", settings=SETTINGS)
    assert first["refresh_token"] != second["refresh_token"]


def test_expired_token_is_rejected():
    expired = JWTSettings(secret="test-secret", issuer="vidtube-tests", access_ttl=timedelta(seconds=-5))
    pair = mint_token_pair(user_id=1, username="a", settings=expired)
    with pytest.raises(JWTError):
        decode_token(pair["access_token"], SETTINGS)


def test_wrong_secret_or_issuer_is_rejected():
    pair = mint_token_pair(user_id=1, username="a", settings=SETTINGS)
    with pytest.raises(JWTError):
        decode_token(pair["access_token"], JWTSettings(secret="other", issuer="vidtube-tests"))
    with pytest.raises(JWTError):
        decode_token(pair["access_token"], JWTSettings(secret="test-secret", issuer="someone-else"))


def test_password_hash_roundtrip():
    hashed = hash_password("correct horse")
    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)
    assert not verify_password("correct horse", "not-a-bcrypt-hash")
