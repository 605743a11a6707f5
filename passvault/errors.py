class VaultError(Exception):
    """Base class for every error raised by the vault core."""


class AuthError(VaultError):
    """The supplied master passphrase could not be authenticated."""


class InvalidPassphrase(AuthError):
    def __init__(self, message: str = "invalid master passphrase"):
        super().__init__(message)


class CryptoError(VaultError):
    """A ciphertext could not be turned back into a usable value."""


class AuthenticationFailed(CryptoError):
    """AEAD tag mismatch: wrong key, tampered or truncated ciphertext."""


class MalformedPayload(CryptoError):
    """Decryption succeeded but the plaintext is not a valid payload."""


class PolicyError(VaultError, ValueError):
    """A password policy cannot be satisfied."""


class LengthTooShort(PolicyError):
    pass


class VaultLocked(VaultError):
    def __init__(self, message: str = "vault is locked"):
        super().__init__(message)


class VaultNotInitialized(VaultError):
    pass


class VaultAlreadyExists(VaultError):
    pass


class EntryNotFound(VaultError, KeyError):
    def __init__(self, entry_id: str):
        super().__init__(entry_id)
        self.entry_id = entry_id

    def __str__(self):
        return f"entry not found: {self.entry_id}"
