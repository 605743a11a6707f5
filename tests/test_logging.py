import pytest
import structlog

from passvault.errors import InvalidPassphrase
from passvault.logging import configure_logging, get_logger, silence_logging
from passvault.sentinel import create_sentinel
from passvault.session import Session


def test_unconfigured_library_use_prints_nothing(key, capsys):
    structlog.reset_defaults()
    silence_logging()
    with pytest.raises(InvalidPassphrase):
        Session().unlock("wrong-pass", create_sentinel(key))
    get_logger().info("vault_registered")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == ""


def test_file_log_drops_secret_fields(tmp_path):
    path = tmp_path / "audit.log"
    configure_logging(False, path)
    get_logger().info("entry_added", entry_id="abc", secret="hunter22", passphrase="correct-horse-1")
    text = path.read_text()
    assert "entry_added" in text
    assert "entry_id=abc" in text
    assert "hunter22" not in text
    assert "correct-horse-1" not in text


def test_debug_logs_go_to_stderr(capsys):
    configure_logging(True)
    get_logger().warning("unlock_failed")
    captured = capsys.readouterr()
    assert "unlock_failed" in captured.err
    assert captured.out == ""
