"""
Shared pytest fixtures for the passvault test suite.

Autouse fixtures isolate every test from the real user environment:
  - PASSVAULT_DIR / PASSVAULT_LOG -> per-test temp directory
  - Argon2 cost                   -> minimal, so registration/unlock stay fast
  - structlog                     -> writes to the temp log file, not stdout
"""
import os

import pytest

from passvault.config import Settings
from passvault.crypto import derive_session_key, gen_salt
from passvault.logging import configure_logging
from passvault.models import KdfParams
from passvault.session import Session
from passvault.storage import MemoryStore, Vault

FAST_KDF = KdfParams(time_cost=1, memory_cost=1024, parallelism=1)


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("PASSVAULT_DIR", str(tmp_path / "vault"))
    monkeypatch.setenv("PASSVAULT_LOG", str(tmp_path / "passvault.log"))
    monkeypatch.setenv("PASSVAULT_KDF_TIME_COST", str(FAST_KDF.time_cost))
    monkeypatch.setenv("PASSVAULT_KDF_MEMORY_COST", str(FAST_KDF.memory_cost))
    monkeypatch.setenv("PASSVAULT_KDF_PARALLELISM", str(FAST_KDF.parallelism))
    configure_logging(False, tmp_path / "passvault.log")
    yield


@pytest.fixture
def settings(tmp_path):
    return Settings(
        vault_dir=tmp_path / "vault",
        log_path=tmp_path / "passvault.log",
        kdf_time_cost=FAST_KDF.time_cost,
        kdf_memory_cost=FAST_KDF.memory_cost,
        kdf_parallelism=FAST_KDF.parallelism,
    )


@pytest.fixture
def key():
    """A freshly derived session key."""
    return derive_session_key("correct-horse-1", gen_salt(), FAST_KDF)


@pytest.fixture
def other_key():
    return derive_session_key("wrong-pass", gen_salt(), FAST_KDF)


@pytest.fixture
def session():
    return Session()


@pytest.fixture
def vault(settings, session):
    """A vault over an in-memory store, not yet registered."""
    return Vault(MemoryStore(), session=session, settings=settings)


@pytest.fixture
def posix_only():
    if os.name != "posix":
        pytest.skip("POSIX permissions only")


@pytest.fixture
def fast_kdf():
    return FAST_KDF
