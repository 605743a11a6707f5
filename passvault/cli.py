import typer, getpass
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from .config import Settings
from .errors import (
    CryptoError,
    EntryNotFound,
    InvalidPassphrase,
    VaultAlreadyExists,
    VaultNotInitialized,
)
from .generator import generate as generate_password
from .logging import configure_logging, get_logger
from .models import PasswordPolicy
from .storage import FileStore, Vault
from .strength import assess

app = typer.Typer(no_args_is_help=True)
LOG = get_logger("passvault.cli")

VAULT_OPTION = typer.Option(None, "--vault", help="Vault directory (defaults to $PASSVAULT_DIR)")


def _log_error(event: str, message: str, **details):
    LOG.error(event, message=message, **details)


def _fail(event: str, message: str, **details):
    _log_error(event, message=message, **details)
    typer.echo(f"✖ {message}", err=True)
    raise typer.Exit(1)


def ask_pw(prompt="Master password: ") -> str:
    """Prompt the user for a password using getpass."""
    return getpass.getpass(prompt)


def ask_new_password(prompt="New master password: ") -> str:
    """Prompt twice for a new password and ensure the entries match."""
    first = ask_pw(prompt)
    second = ask_pw("Confirm " + prompt[0].lower() + prompt[1:])
    if first != second:
        typer.echo("✖ Passwords did not match. Aborting.", err=True)
        raise typer.Exit(1)
    return first


def _format_timestamp(ts: str) -> str:
    """Display ISO timestamps in HH:MM:SS DD.MM.YYYY format."""
    try:
        dt = datetime.strptime(ts, "%Y-%m-%dT%H:%M:%SZ")
        return dt.strftime("%H:%M:%S %d.%m.%Y")
    except ValueError:
        return ts


def _open_vault(vault: Optional[str]) -> Vault:
    settings = Settings.from_env(vault_dir=vault)
    try:
        store = FileStore(settings.vault_dir)
    except (PermissionError, RuntimeError) as exc:
        _fail("vault_open_failed", str(exc), vault=str(settings.vault_dir))
    return Vault(store, settings=settings)


@contextmanager
def _core_errors(vault: Vault):
    """Translate core exceptions into logged, user-facing CLI failures."""
    where = str(getattr(vault.store, "root", ""))
    try:
        yield
    except InvalidPassphrase:
        _fail("auth_failed", "Incorrect master password.", vault=where)
    except VaultNotInitialized:
        _fail("vault_missing", "No vault found. Run `passvault init` first.", vault=where)
    except EntryNotFound as exc:
        _fail("entry_not_found", f"Entry not found: {exc.entry_id}", vault=where)
    except CryptoError as exc:
        _fail(
            "vault_corrupted",
            "Vault data is corrupted or was tampered with. Restore a backup or run `passvault reset`.",
            vault=where,
            error=type(exc).__name__,
        )


def _unlocked(vault: Optional[str]) -> Vault:
    v = _open_vault(vault)
    with _core_errors(v):
        v.unlock(ask_pw())
    return v


def _strength_line(password: str) -> str:
    value, strength = assess(password)
    return f"strength: {value}/100 ({strength.value})"


@app.callback()
def main(debug: bool = typer.Option(False, "--debug", help="Log to stderr instead of the log file")):
    """Password-encrypted credential vault."""
    configure_logging(debug, Settings.from_env().log_path)


@app.command()
def init(vault: str = VAULT_OPTION):
    """Register a new vault protected by a master password."""
    v = _open_vault(vault)
    if v.exists():
        _fail("vault_exists", "A vault already exists here.", vault=str(v.store.root))
    pw = ask_new_password()
    try:
        v.register(pw)
    except (ValueError, VaultAlreadyExists) as exc:
        _fail("vault_init_failed", str(exc), vault=str(v.store.root))
    v.lock()
    typer.echo("✔ Vault created.")


@app.command("ls")
def ls_cmd(vault: str = VAULT_OPTION):
    """List entries without their secrets."""
    v = _unlocked(vault)
    with _core_errors(v):
        entries = v.entries()
    v.lock()
    if not entries:
        typer.echo("No passwords saved yet.")
        return
    for e in entries:
        typer.echo(f"{e.id}\t{e.title}\t{e.username}\t{e.url}\tadded={_format_timestamp(e.created_at)}")


@app.command()
def show(
    entry_id: str,
    reveal: bool = typer.Option(False, "--reveal", help="Print the stored secret in clear"),
    vault: str = VAULT_OPTION,
):
    """Show one entry; the secret stays masked unless --reveal is given."""
    v = _unlocked(vault)
    with _core_errors(v):
        e = v.get_entry(entry_id)
    v.lock()
    typer.echo(f"id:       {e.id}")
    typer.echo(f"title:    {e.title}")
    typer.echo(f"username: {e.username}")
    typer.echo(f"secret:   {e.secret if reveal else '•' * 8}")
    typer.echo(f"url:      {e.url}")
    typer.echo(f"notes:    {e.notes}")
    typer.echo(f"added:    {_format_timestamp(e.created_at)}")


@app.command()
def add(
    title: str = typer.Option(..., "--title"),
    username: str = typer.Option("", "--username"),
    url: str = typer.Option("", "--url"),
    notes: str = typer.Option("", "--notes"),
    gen: bool = typer.Option(False, "--generate", help="Generate the secret instead of prompting"),
    length: int = typer.Option(16, "--length", help="Length of a generated secret"),
    vault: str = VAULT_OPTION,
):
    """Add a credential entry."""
    v = _unlocked(vault)
    if gen:
        try:
            secret = generate_password(PasswordPolicy(length=length))
        except ValueError as exc:
            v.lock()
            _fail("generate_failed", str(exc))
    else:
        secret = ask_pw("Secret: ")
    try:
        with _core_errors(v):
            entry = v.add_entry(title=title, secret=secret, username=username, url=url, notes=notes)
    except ValueError as exc:
        _fail("add_failed", f"Add failed: {exc}")
    finally:
        v.lock()
    typer.echo(f"✔ Added {entry.title} ({entry.id})")
    typer.echo(_strength_line(secret))


@app.command()
def edit(
    entry_id: str,
    title: Optional[str] = typer.Option(None, "--title"),
    username: Optional[str] = typer.Option(None, "--username"),
    url: Optional[str] = typer.Option(None, "--url"),
    notes: Optional[str] = typer.Option(None, "--notes"),
    new_secret: bool = typer.Option(False, "--secret", help="Prompt for a replacement secret"),
    vault: str = VAULT_OPTION,
):
    """Change fields of an existing entry. Its id never changes."""
    changes = {k: val for k, val in dict(title=title, username=username, url=url, notes=notes).items() if val is not None}
    v = _unlocked(vault)
    if new_secret:
        changes["secret"] = ask_pw("New secret: ")
    if not changes:
        v.lock()
        typer.echo("Nothing to change.")
        return
    try:
        with _core_errors(v):
            v.update_entry(entry_id, **changes)
    except ValueError as exc:
        _fail("edit_failed", f"Edit failed: {exc}")
    finally:
        v.lock()
    typer.echo(f"✔ Updated {entry_id}")


@app.command()
def rm(
    entry_id: str,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
    vault: str = VAULT_OPTION,
):
    """Delete an entry."""
    v = _unlocked(vault)
    if not yes and not typer.confirm(f"Delete entry {entry_id}?", default=False):
        v.lock()
        typer.echo("↷ Aborted.")
        raise typer.Exit(0)
    try:
        with _core_errors(v):
            removed = v.remove_entry(entry_id)
    finally:
        v.lock()
    typer.echo(f"✔ Removed {removed.title}")


@app.command()
def search(term: str, vault: str = VAULT_OPTION):
    """Case-insensitive search over title, username and URL."""
    v = _unlocked(vault)
    with _core_errors(v):
        hits = v.search(term)
    v.lock()
    if not hits:
        typer.echo("No passwords match your search.")
        return
    for e in hits:
        typer.echo(f"{e.id}\t{e.title}\t{e.username}\t{e.url}")


@app.command()
def generate(
    length: int = typer.Option(16, "--length", "-l"),
    upper: bool = typer.Option(True, "--upper/--no-upper"),
    lower: bool = typer.Option(True, "--lower/--no-lower"),
    numbers: bool = typer.Option(True, "--numbers/--no-numbers"),
    symbols: bool = typer.Option(True, "--symbols/--no-symbols"),
):
    """Print a random password and its strength."""
    try:
        policy = PasswordPolicy(
            length=length,
            include_uppercase=upper,
            include_lowercase=lower,
            include_numbers=numbers,
            include_symbols=symbols,
        )
        password = generate_password(policy)
    except ValueError as exc:
        _fail("generate_failed", str(exc), length=length)
    typer.echo(password)
    typer.echo(_strength_line(password), err=True)


@app.command()
def score():
    """Rate a password without storing it."""
    typer.echo(_strength_line(ask_pw("Password to rate: ")))


@app.command()
def reset(
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt"),
    vault: str = VAULT_OPTION,
):
    """Destroy the vault so it can be registered again. All entries are lost."""
    v = _open_vault(vault)
    if not yes:
        typer.echo("⚠ WARNING: every stored entry will be destroyed.")
        if not typer.confirm("Proceed with destructive reset?", default=False):
            typer.echo("↷ Aborted.")
            raise typer.Exit(0)
    v.reset()
    typer.echo("✔ Vault removed. Run `passvault init` to start over.")
