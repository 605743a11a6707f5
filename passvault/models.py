from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from typing import List
import base64, time, uuid

from .errors import EntryNotFound, MalformedPayload

PAYLOAD_VERSION = 1
SENTINEL_VERSION = 1
MIN_POLICY_LENGTH = 1
MAX_POLICY_LENGTH = 128
MIN_SALT_SIZE = 8           # Argon2 minimum
MIN_SEALED_SIZE = 24 + 16   # nonce + tag


def b64e(b: bytes) -> str: return base64.b64encode(b).decode("ascii")
def b64d(s: str) -> bytes: return base64.b64decode(s.encode("ascii"), validate=True)


def _utcnow() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def _new_id() -> str:
    return uuid.uuid4().hex


class KdfParams(BaseModel):
    """Argon2id cost parameters; stored with the sentinel so unlock re-derives identically."""
    time_cost: int = Field(default=3, ge=1)
    memory_cost: int = Field(default=256 * 1024, ge=8)   # KiB
    parallelism: int = Field(default=2, ge=1)
    hash_len: int = Field(default=32, ge=16)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_memory(self) -> "KdfParams":
        """Argon2 requires at least 8 KiB of memory per lane."""
        if self.memory_cost < 8 * self.parallelism:
            raise ValueError("memory_cost must be at least 8 * parallelism KiB")
        return self


class AuthSentinel(BaseModel):
    """Encrypted marker used to check a passphrase; persisted next to the vault."""
    version: int = SENTINEL_VERSION
    kdf_salt_b64: str
    kdf: KdfParams
    sealed_b64: str                  # base64([24B nonce][ciphertext(tag)])

    @field_validator("kdf_salt_b64")
    @classmethod
    def validate_salt(cls, v: str):
        if len(b64d(v)) < MIN_SALT_SIZE:
            raise ValueError(f"kdf salt must be at least {MIN_SALT_SIZE} bytes")
        return v

    @field_validator("sealed_b64")
    @classmethod
    def validate_sealed(cls, v: str):
        if len(b64d(v)) < MIN_SEALED_SIZE:
            raise ValueError("sealed sentinel is truncated")
        return v

    def to_bytes(self) -> bytes:
        return self.model_dump_json().encode()

    @classmethod
    def from_bytes(cls, raw: bytes) -> "AuthSentinel":
        try:
            return cls.model_validate_json(raw)
        except ValidationError as exc:
            raise MalformedPayload("stored authentication sentinel is unreadable") from exc


class CredentialEntry(BaseModel):
    """Single credential stored inside the vault payload."""
    id: str = Field(default_factory=_new_id)
    title: str
    username: str = ""
    secret: str = Field(min_length=1)
    url: str = ""
    notes: str = ""
    created_at: str = Field(default_factory=_utcnow)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str):
        if not v.strip():
            raise ValueError("title must not be empty")
        return v

    def matches(self, term: str) -> bool:
        term = term.lower()
        return term in self.title.lower() or term in self.username.lower() or term in self.url.lower()


class VaultPayload(BaseModel):
    """Ordered collection of `CredentialEntry` objects; the plaintext of the vault blob."""
    version: int = PAYLOAD_VERSION
    entries: List[CredentialEntry] = []

    def _index(self, entry_id: str) -> int:
        for i, entry in enumerate(self.entries):
            if entry.id == entry_id:
                return i
        raise EntryNotFound(entry_id)

    def get(self, entry_id: str) -> CredentialEntry:
        return self.entries[self._index(entry_id)]

    def add(self, entry: CredentialEntry) -> CredentialEntry:
        if any(e.id == entry.id for e in self.entries):
            raise ValueError(f"duplicate entry id {entry.id}")
        self.entries.append(entry)
        return entry

    def update(self, entry_id: str, **changes) -> CredentialEntry:
        """Apply field changes to an entry in place; `id` and `created_at` never change."""
        i = self._index(entry_id)
        current = self.entries[i]
        changes.pop("id", None)
        changes.pop("created_at", None)
        unknown = set(changes) - set(CredentialEntry.model_fields)
        if unknown:
            raise ValueError(f"unknown entry fields: {', '.join(sorted(unknown))}")
        updated = CredentialEntry.model_validate({**current.model_dump(), **changes})
        self.entries[i] = updated
        return updated

    def remove(self, entry_id: str) -> CredentialEntry:
        return self.entries.pop(self._index(entry_id))

    def search(self, term: str) -> List[CredentialEntry]:
        if not term:
            return list(self.entries)
        return [e for e in self.entries if e.matches(term)]


class PasswordPolicy(BaseModel):
    """Character-class policy for the password generator. Never persisted."""
    length: int = Field(default=16, ge=MIN_POLICY_LENGTH, le=MAX_POLICY_LENGTH)
    include_uppercase: bool = True
    include_lowercase: bool = True
    include_numbers: bool = True
    include_symbols: bool = True
