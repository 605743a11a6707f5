"""
Runtime settings, read from the environment:

    PASSVAULT_DIR              vault directory for the file-backed store
    PASSVAULT_LOG              log file path
    PASSVAULT_KDF_TIME_COST    Argon2id passes
    PASSVAULT_KDF_MEMORY_COST  Argon2id memory in KiB
    PASSVAULT_KDF_PARALLELISM  Argon2id lanes

KDF values only apply when a vault is registered; an existing vault keeps the
parameters recorded in its sentinel.
"""
import os
import pathlib

from pydantic import BaseModel, Field, model_validator

from .logging import default_log_path
from .models import KdfParams


def default_vault_dir() -> pathlib.Path:
    return pathlib.Path.home() / ".local" / "share" / "passvault"


class Settings(BaseModel):
    """Validated passvault settings."""

    vault_dir: pathlib.Path = Field(default_factory=default_vault_dir)
    log_path: pathlib.Path = Field(default_factory=default_log_path)
    kdf_time_cost: int = Field(default=3, ge=1)
    kdf_memory_cost: int = Field(default=256 * 1024, ge=8)
    kdf_parallelism: int = Field(default=2, ge=1, le=64)

    @model_validator(mode="after")
    def validate_kdf(self) -> "Settings":
        """Fail early on parameters Argon2 would reject."""
        self.kdf_params()
        return self

    def kdf_params(self) -> KdfParams:
        return KdfParams(
            time_cost=self.kdf_time_cost,
            memory_cost=self.kdf_memory_cost,
            parallelism=self.kdf_parallelism,
        )

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """Build settings from PASSVAULT_* variables; keyword arguments win."""
        values = {}
        env_map = {
            "vault_dir": "PASSVAULT_DIR",
            "log_path": "PASSVAULT_LOG",
            "kdf_time_cost": "PASSVAULT_KDF_TIME_COST",
            "kdf_memory_cost": "PASSVAULT_KDF_MEMORY_COST",
            "kdf_parallelism": "PASSVAULT_KDF_PARALLELISM",
        }
        for field_name, env_name in env_map.items():
            raw = os.environ.get(env_name)
            if raw is not None:
                values[field_name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
