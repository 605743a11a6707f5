import os, pathlib, stat, re, tempfile, threading
from typing import Dict, List, Optional, Protocol

from .codec import decrypt_vault, empty_vault, encrypt_vault
from .config import Settings
from .crypto import SessionKey, derive_session_key, gen_salt
from .errors import VaultAlreadyExists, VaultNotInitialized
from .logging import get_logger
from .models import AuthSentinel, CredentialEntry, VaultPayload
from .sentinel import create_sentinel
from .session import Session

LOG = get_logger(__name__)

VAULT_KEY = "vault"
SENTINEL_KEY = "auth"
MIN_PASSPHRASE_LENGTH = 8
MAX_BLOB_SIZE = 1 << 30  # 1 GiB limit for a stored blob
NOFOLLOW_FLAG = getattr(os, "O_NOFOLLOW", 0)
KEY_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


class Store(Protocol):
    """Opaque byte-addressable persistence substrate."""

    def get(self, key: str) -> Optional[bytes]: ...

    def set(self, key: str, value: bytes) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """Dict-backed store; contents vanish with the process."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self._data[key] = bytes(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


def _validate_key(key: str) -> str:
    if not isinstance(key, str):
        raise TypeError("store key must be a string")
    if not KEY_PATTERN.fullmatch(key) or key in (".", ".."):
        raise ValueError("invalid store key: use letters, numbers, dot, underscore, dash only")
    return key


def ensure_not_symlink(path: pathlib.Path, label: str):
    try:
        st = os.lstat(path)
    except FileNotFoundError:
        return
    if stat.S_ISLNK(st.st_mode):
        raise RuntimeError(f"{label} {path} is a symlink, which is not allowed")


def ensure_regular_file(path: pathlib.Path, label: str, allow_missing: bool = False):
    try:
        st = os.lstat(path)
    except FileNotFoundError:
        if allow_missing:
            return
        raise
    if not stat.S_ISREG(st.st_mode):
        raise RuntimeError(f"{label} {path} is not a regular file")
    if st.st_nlink > 1:
        raise RuntimeError(f"{label} {path} has unexpected hard links")


def safe_read_bytes(path: pathlib.Path) -> bytes:
    """
    Open and read a file while holding the descriptor, refusing symlinks.
    """
    ensure_regular_file(path, str(path))
    flags = os.O_RDONLY
    if NOFOLLOW_FLAG:
        flags |= NOFOLLOW_FLAG
    fd = os.open(path, flags)
    with os.fdopen(fd, "rb") as f:
        data = f.read(MAX_BLOB_SIZE + 1)
    if len(data) > MAX_BLOB_SIZE:
        raise OverflowError(f"{path} exceeds supported size ({MAX_BLOB_SIZE} bytes)")
    return data


def write_secure_file(path, data: bytes):
    """Atomically replace `path` with `data`, mode 0600 (owner read/write only)."""
    path = pathlib.Path(path)
    ensure_not_symlink(path.parent, "Parent directory")
    ensure_not_symlink(path, "Target file")
    fd, tmp_path = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
        os.chmod(path, 0o600)
    finally:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
    ensure_regular_file(path, "Target file")


def check_vault_permissions(path: pathlib.Path):
    if os.name != "posix":
        return  # only enforce on Linux/Unix
    try:
        st = os.lstat(path)
        if stat.S_ISLNK(st.st_mode):
            raise PermissionError(f"Vault directory {path} cannot be a symlink")
        # Group or Others have any permission? -> too open
        if st.st_mode & (stat.S_IRWXG | stat.S_IRWXO):
            raise PermissionError(
                f"Vault directory {path} is too open. "
                f"Fix with: chmod 700 {path}"
            )
    except FileNotFoundError:
        # Directory not there yet -> will be created
        pass


def canonicalize_path(path: pathlib.Path) -> pathlib.Path:
    """Return an absolute, symlink-resolved version of the provided path."""
    p = pathlib.Path(path).expanduser()
    return p.resolve(strict=False)


class FileStore:
    """One 0600 file per key inside a 0700 directory."""

    def __init__(self, root: pathlib.Path):
        self.root = canonicalize_path(root)
        ensure_not_symlink(self.root, "Vault root")
        check_vault_permissions(self.root)
        self._mkroot()

    def _mkroot(self):
        self.root.mkdir(parents=True, exist_ok=True)
        ensure_not_symlink(self.root, "Vault root")
        if os.name == "posix":
            os.chmod(self.root, 0o700)

    def path_for(self, key: str) -> pathlib.Path:
        return self.root / f"{_validate_key(key)}.bin"

    def get(self, key: str) -> Optional[bytes]:
        path = self.path_for(key)
        try:
            return safe_read_bytes(path)
        except FileNotFoundError:
            return None

    def set(self, key: str, value: bytes) -> None:
        if len(value) > MAX_BLOB_SIZE:
            raise OverflowError(f"value for {key} exceeds supported size ({MAX_BLOB_SIZE} bytes)")
        write_secure_file(self.path_for(key), bytes(value))

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            ensure_regular_file(path, "stored blob", allow_missing=True)
            os.remove(path)
        except FileNotFoundError:
            pass


class Vault:
    """Credential vault: one sentinel blob and one payload blob in a `Store`.

    Every read or write of entries needs a key cached in `session`; without
    one the calls raise VaultLocked.
    """

    def __init__(self, store: Store, session: Optional[Session] = None, settings: Optional[Settings] = None):
        self.store = store
        self.session = session if session is not None else Session()
        self.settings = settings if settings is not None else Settings.from_env()
        self._write_lock = threading.RLock()

    # -- lifecycle -----------------------------------------------------------

    def exists(self) -> bool:
        return self.store.get(SENTINEL_KEY) is not None

    def register(self, passphrase: str) -> SessionKey:
        """Create the sentinel and an empty vault for `passphrase`, leaving the session unlocked."""
        if self.exists():
            raise VaultAlreadyExists("a vault is already registered in this store")
        if len(passphrase) < MIN_PASSPHRASE_LENGTH:
            raise ValueError(f"master passphrase must be at least {MIN_PASSPHRASE_LENGTH} characters")
        params = self.settings.kdf_params()
        key = derive_session_key(passphrase, gen_salt(), params)
        self.store.set(VAULT_KEY, empty_vault(key))
        self.store.set(SENTINEL_KEY, create_sentinel(key).to_bytes())
        self.session.activate(key)
        LOG.info("vault_registered", time_cost=params.time_cost, memory_cost=params.memory_cost)
        return key

    def load_sentinel(self) -> AuthSentinel:
        raw = self.store.get(SENTINEL_KEY)
        if raw is None:
            raise VaultNotInitialized("no vault has been registered in this store")
        return AuthSentinel.from_bytes(raw)

    def unlock(self, passphrase: str) -> SessionKey:
        return self.session.unlock(passphrase, self.load_sentinel())

    def lock(self) -> None:
        with self._write_lock:
            self.session.logout()

    @property
    def is_unlocked(self) -> bool:
        return self.session.is_unlocked

    def reset(self) -> None:
        """Destroy both blobs and lock. The store must be registered again before use."""
        with self._write_lock:
            self.session.logout()
            self.store.delete(VAULT_KEY)
            self.store.delete(SENTINEL_KEY)
        LOG.warning("vault_reset")

    # -- payload -------------------------------------------------------------

    def load(self) -> VaultPayload:
        """Decrypt the stored payload, creating an empty one if none was ever saved."""
        key = self.session.require_key()
        raw = self.store.get(VAULT_KEY)
        if raw is None:
            payload = VaultPayload()
            self._save(payload, key)
            LOG.info("vault_initialized_empty")
            return payload
        return decrypt_vault(raw, key)

    def _save(self, payload: VaultPayload, key: SessionKey):
        self.store.set(VAULT_KEY, encrypt_vault(payload, key))

    def entries(self) -> List[CredentialEntry]:
        return self.load().entries

    def get_entry(self, entry_id: str) -> CredentialEntry:
        return self.load().get(entry_id)

    def search(self, term: str) -> List[CredentialEntry]:
        return self.load().search(term)

    def add_entry(self, title: str, secret: str, username: str = "", url: str = "", notes: str = "") -> CredentialEntry:
        with self._write_lock:
            key = self.session.require_key()
            payload = self.load()
            entry = payload.add(CredentialEntry(title=title, secret=secret, username=username, url=url, notes=notes))
            self._save(payload, key)
        LOG.info("entry_added", entry_id=entry.id)
        return entry

    def update_entry(self, entry_id: str, **changes) -> CredentialEntry:
        with self._write_lock:
            key = self.session.require_key()
            payload = self.load()
            entry = payload.update(entry_id, **changes)
            self._save(payload, key)
        LOG.info("entry_updated", entry_id=entry_id, fields=sorted(changes))
        return entry

    def remove_entry(self, entry_id: str) -> CredentialEntry:
        with self._write_lock:
            key = self.session.require_key()
            payload = self.load()
            removed = payload.remove(entry_id)
            self._save(payload, key)
        LOG.info("entry_removed", entry_id=entry_id)
        return removed
