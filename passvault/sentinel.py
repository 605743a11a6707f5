"""
Authentication sentinel.

A fixed plaintext is sealed under the session key at registration. A candidate
passphrase is accepted iff re-deriving with the stored salt opens the sentinel
and yields that plaintext. The passphrase itself is never stored.
"""
from .crypto import SessionKey, seal, unseal, consteq, derive_session_key
from .errors import CryptoError, MalformedPayload
from .models import MIN_SALT_SIZE, AuthSentinel, b64e, b64d

SENTINEL_PLAINTEXT = b"authenticated"
SENTINEL_CONTEXT = b"auth-sentinel"


def create_sentinel(key: SessionKey) -> AuthSentinel:
    """Seal the fixed plaintext under `key` with a fresh nonce."""
    return AuthSentinel(
        kdf_salt_b64=b64e(key.salt),
        kdf=key.params,
        sealed_b64=b64e(seal(key, SENTINEL_PLAINTEXT, SENTINEL_CONTEXT)),
    )


def sentinel_salt(sentinel: AuthSentinel) -> bytes:
    try:
        salt = b64d(sentinel.kdf_salt_b64)
    except ValueError as exc:
        raise MalformedPayload("sentinel salt is not valid base64") from exc
    if len(salt) < MIN_SALT_SIZE:
        raise MalformedPayload(f"sentinel salt is shorter than {MIN_SALT_SIZE} bytes")
    return salt


def verify_key(key: SessionKey, sentinel: AuthSentinel) -> bool:
    """True iff `key` opens the sentinel to the fixed plaintext. Decryption errors count as a mismatch."""
    try:
        plaintext = unseal(key, b64d(sentinel.sealed_b64), SENTINEL_CONTEXT)
    except (CryptoError, ValueError):
        return False
    return consteq(plaintext, SENTINEL_PLAINTEXT)


def derive_for(candidate: str, sentinel: AuthSentinel) -> SessionKey:
    """Derive the key `candidate` would produce under the sentinel's salt and KDF parameters."""
    return derive_session_key(candidate, sentinel_salt(sentinel), sentinel.kdf)


def verify(candidate: str, sentinel: AuthSentinel) -> bool:
    return verify_key(derive_for(candidate, sentinel), sentinel)
