"""
Session key cache.

Holds at most one derived `SessionKey`. An empty cache means the vault is
locked. A `Session` is an ordinary object owned by whoever drives the vault;
separate instances never share state.
"""
import threading
from typing import Optional

from .crypto import SessionKey, zero_bytes
from .errors import InvalidPassphrase, VaultLocked
from .logging import get_logger
from .models import AuthSentinel
from .sentinel import derive_for, verify_key

LOG = get_logger(__name__)


class Session:
    def __init__(self):
        self._lock = threading.Lock()
        self._key: Optional[SessionKey] = None

    def unlock(self, candidate: str, sentinel: AuthSentinel) -> SessionKey:
        """Verify `candidate` against the sentinel and cache the derived key.

        On failure the cache is left empty and InvalidPassphrase is raised.
        """
        key = derive_for(candidate, sentinel)
        ok = verify_key(key, sentinel)
        with self._lock:
            self._clear()
            if not ok:
                zero_bytes(key.material)
                LOG.warning("unlock_failed")
                raise InvalidPassphrase()
            self._key = key
        LOG.info("session_unlocked")
        return key

    def activate(self, key: SessionKey) -> None:
        """Cache an already-trusted key, e.g. one just used to register a vault."""
        with self._lock:
            if self._key is not key:
                self._clear()
            self._key = key

    def get_active_key(self) -> Optional[SessionKey]:
        with self._lock:
            return self._key

    def require_key(self) -> SessionKey:
        key = self.get_active_key()
        if key is None:
            raise VaultLocked()
        return key

    @property
    def is_unlocked(self) -> bool:
        return self.get_active_key() is not None

    def logout(self) -> None:
        """Wipe and drop the cached key. Safe to call when already locked."""
        with self._lock:
            was_unlocked = self._key is not None
            self._clear()
        if was_unlocked:
            LOG.info("session_locked")

    def _clear(self):
        if self._key is not None:
            zero_bytes(self._key.material)
            self._key = None
