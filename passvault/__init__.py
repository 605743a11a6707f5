"""Password-encrypted local credential vault."""
from .codec import decrypt_vault, encrypt_vault
from .errors import (
    AuthError,
    AuthenticationFailed,
    CryptoError,
    EntryNotFound,
    InvalidPassphrase,
    LengthTooShort,
    MalformedPayload,
    PolicyError,
    VaultError,
    VaultLocked,
)
from .generator import generate
from .models import CredentialEntry, PasswordPolicy, VaultPayload
from .sentinel import create_sentinel, verify
from .session import Session
from .storage import FileStore, MemoryStore, Vault
from .strength import Strength, label, score

__version__ = "0.1.0"

__all__ = [
    "AuthError",
    "AuthenticationFailed",
    "CredentialEntry",
    "CryptoError",
    "EntryNotFound",
    "FileStore",
    "InvalidPassphrase",
    "LengthTooShort",
    "MalformedPayload",
    "MemoryStore",
    "PasswordPolicy",
    "PolicyError",
    "Session",
    "Strength",
    "Vault",
    "VaultError",
    "VaultLocked",
    "VaultPayload",
    "create_sentinel",
    "decrypt_vault",
    "encrypt_vault",
    "generate",
    "label",
    "score",
    "verify",
]
