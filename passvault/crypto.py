from argon2.low_level import hash_secret_raw, Type
from nacl.bindings import (
    crypto_aead_xchacha20poly1305_ietf_encrypt,
    crypto_aead_xchacha20poly1305_ietf_decrypt,
    crypto_aead_xchacha20poly1305_ietf_KEYBYTES,
    crypto_aead_xchacha20poly1305_ietf_NPUBBYTES,
    crypto_aead_xchacha20poly1305_ietf_ABYTES,
)
from nacl.exceptions import CryptoError as NaclCryptoError
from dataclasses import dataclass, field
import os, hmac

from .errors import AuthenticationFailed, VaultLocked
from .models import KdfParams

NONCE_SIZE = crypto_aead_xchacha20poly1305_ietf_NPUBBYTES
KEY_SIZE = crypto_aead_xchacha20poly1305_ietf_KEYBYTES
TAG_SIZE = crypto_aead_xchacha20poly1305_ietf_ABYTES
SALT_SIZE = 16


@dataclass(frozen=True)
class SessionKey:
    """Key material derived from a master passphrase, plus what produced it."""
    material: bytearray = field(repr=False)
    salt: bytes = field(repr=False)
    params: KdfParams

    def __bytes__(self) -> bytes:
        return bytes(self.material)

    @property
    def wiped(self) -> bool:
        return not any(self.material)


def kdf_argon2id(password_bytes: bytes, salt: bytes, params: KdfParams) -> bytes:
    """Derive a key from the user-supplied passphrase using Argon2id."""
    try:
        return hash_secret_raw(
            bytes(password_bytes),
            salt,
            time_cost=params.time_cost,
            memory_cost=params.memory_cost,
            parallelism=params.parallelism,
            hash_len=params.hash_len,
            type=Type.ID,
        )
    finally:
        zero_bytes(password_bytes)


def derive_session_key(passphrase: str, salt: bytes, params: KdfParams) -> SessionKey:
    """Same passphrase, salt and params always yield the same key."""
    pw = bytearray(passphrase.encode("utf-8"))
    return SessionKey(material=bytearray(kdf_argon2id(pw, salt, params)), salt=salt, params=params)


def gen_salt() -> bytes:
    return os.urandom(SALT_SIZE)


def gen_nonce() -> bytes:
    """Return a cryptographically-random 24-byte nonce for XChaCha20-Poly1305."""
    return os.urandom(NONCE_SIZE)


def aead_encrypt(key: bytes, nonce: bytes, plaintext: bytes, ad: bytes) -> bytes:
    """Encrypt `plaintext` with XChaCha20-Poly1305 using the supplied nonce and AD."""
    return crypto_aead_xchacha20poly1305_ietf_encrypt(plaintext, ad, nonce, key)


def aead_decrypt(key: bytes, nonce: bytes, ciphertext: bytes, ad: bytes) -> bytes:
    """Decrypt a ciphertext produced by `aead_encrypt`, raising AuthenticationFailed on failure."""
    try:
        return crypto_aead_xchacha20poly1305_ietf_decrypt(ciphertext, ad, nonce, key)
    except NaclCryptoError as exc:
        raise AuthenticationFailed("decryption failed") from exc


def _live_material(key: SessionKey) -> bytes:
    """Copy the key bytes, refusing a key that logout already wiped."""
    material = bytes(key)
    if not any(material):
        raise VaultLocked("session key was wiped by logout")
    return material


def seal(key: SessionKey, plaintext: bytes, ad: bytes) -> bytes:
    """Encrypt under a fresh nonce and return `nonce || ciphertext+tag`."""
    material = _live_material(key)
    nonce = gen_nonce()
    return nonce + aead_encrypt(material, nonce, plaintext, ad)


def unseal(key: SessionKey, blob: bytes, ad: bytes) -> bytes:
    """Reverse of `seal`. Truncated blobs fail the same way a bad tag does."""
    if len(blob) < NONCE_SIZE + TAG_SIZE:
        raise AuthenticationFailed(f"ciphertext is too short ({len(blob)} < {NONCE_SIZE + TAG_SIZE})")
    material = _live_material(key)
    nonce, ct = blob[:NONCE_SIZE], blob[NONCE_SIZE:]
    return aead_decrypt(material, nonce, ct, ad)


def consteq(a: bytes, b: bytes) -> bool:
    """Constant-time comparison helper to avoid timing leaks when comparing secrets."""
    return hmac.compare_digest(a, b)


def zero_bytes(b):
    """Best-effort zeroization for mutable buffers that held sensitive information."""
    if isinstance(b, bytearray):
        for i in range(len(b)):
            b[i] = 0
    elif isinstance(b, memoryview) and not b.readonly:
        b[:] = b"\x00" * len(b)
