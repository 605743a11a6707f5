import json

import pytest

from passvault.codec import decrypt_vault
from passvault.errors import AuthenticationFailed, MalformedPayload
from passvault.models import AuthSentinel, b64d, b64e
from passvault.sentinel import create_sentinel, sentinel_salt, verify, verify_key


def test_verify_accepts_the_registering_passphrase(key):
    sentinel = create_sentinel(key)
    assert verify("correct-horse-1", sentinel)
    assert verify_key(key, sentinel)


@pytest.mark.parametrize("candidate", ["wrong-pass", "correct-horse-2", "", "Correct-horse-1", "correct-horse-1 "])
def test_verify_rejects_other_passphrases(key, candidate):
    assert not verify(candidate, create_sentinel(key))


def test_sentinels_use_fresh_nonces(key):
    assert create_sentinel(key).sealed_b64 != create_sentinel(key).sealed_b64


def test_sentinel_records_salt_and_kdf(key):
    sentinel = create_sentinel(key)
    assert b64d(sentinel.kdf_salt_b64) == key.salt
    assert sentinel.kdf == key.params


def test_corrupt_sentinel_is_a_failed_verification(key):
    sentinel = create_sentinel(key)
    raw = bytearray(b64d(sentinel.sealed_b64))
    raw[-1] ^= 0x01
    broken = sentinel.model_copy(update={"sealed_b64": b64e(bytes(raw))})
    assert not verify("correct-horse-1", broken)
    garbage = sentinel.model_copy(update={"sealed_b64": "!!not-base64!!"})
    assert not verify("correct-horse-1", garbage)


def test_sentinel_cannot_stand_in_for_vault(key):
    sealed = b64d(create_sentinel(key).sealed_b64)
    with pytest.raises(AuthenticationFailed):
        decrypt_vault(sealed, key)


def test_sentinel_bytes_roundtrip(key):
    sentinel = create_sentinel(key)
    assert AuthSentinel.from_bytes(sentinel.to_bytes()) == sentinel


def test_unreadable_sentinel_bytes(key):
    with pytest.raises(MalformedPayload):
        AuthSentinel.from_bytes(b"\x00garbage")


def test_non_ascii_sealed_field_is_a_failed_verification(key):
    sentinel = create_sentinel(key).model_copy(update={"sealed_b64": "é"})
    assert not verify("correct-horse-1", sentinel)


@pytest.mark.parametrize("salt", ["AAAA", "!!not-base64!!", "é"])
def test_bad_salt_is_malformed(key, salt):
    sentinel = create_sentinel(key).model_copy(update={"kdf_salt_b64": salt})
    with pytest.raises(MalformedPayload):
        sentinel_salt(sentinel)
    with pytest.raises(MalformedPayload):
        verify("correct-horse-1", sentinel)


@pytest.mark.parametrize(
    "field, value",
    [
        ("kdf_salt_b64", "AAAA"),
        ("kdf_salt_b64", "not base64 at all"),
        ("sealed_b64", b64e(b"\x00" * 39)),
        ("sealed_b64", "é"),
    ],
)
def test_stored_sentinel_fields_are_checked(key, field, value):
    data = create_sentinel(key).model_dump()
    data[field] = value
    with pytest.raises(MalformedPayload):
        AuthSentinel.from_bytes(json.dumps(data).encode())
