import structlog, sys, pathlib, os

_LOG_STREAM = None
_LOG_PATH = None

SECRET_FIELDS = ("secret", "password", "passphrase", "key")


def default_log_path() -> pathlib.Path:
    return pathlib.Path(os.environ.get("PASSVAULT_LOG", pathlib.Path.home() / ".local" / "state" / "passvault" / "passvault.log"))


def _log_handle(path: pathlib.Path):
    """Open (or reuse) the 0600 append-only log file at `path`."""
    global _LOG_STREAM, _LOG_PATH
    path = pathlib.Path(path)
    if _LOG_STREAM is None or _LOG_PATH != path:
        if _LOG_STREAM is not None:
            _LOG_STREAM.close()
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o600)
        os.chmod(path, 0o600)
        _LOG_STREAM = os.fdopen(fd, "a", buffering=1)
        _LOG_PATH = path
    return _LOG_STREAM


def _filter_secrets(_, __, event_dict):
    for name in SECRET_FIELDS:
        event_dict.pop(name, None)
    return event_dict


def _human_renderer(_, __, event_dict):
    """Render structlog event dictionaries into human-readable timestamped lines."""
    ts = event_dict.pop("timestamp", "")
    level = event_dict.pop("level", "").upper()
    event = event_dict.pop("event", "")
    extras = " ".join(f"{k}={event_dict[k]}" for k in sorted(event_dict))
    return f"{ts} [{level}] {event} {extras}".strip()


def _drop_event(_, __, event_dict):
    raise structlog.DropEvent


def silence_logging():
    """Discard every event. Used until `configure_logging` picks a destination."""
    structlog.configure(processors=[_drop_event])


def configure_logging(debug: bool = False, log_path=None):
    """Route logs to stderr in debug mode, otherwise to the secret-filtered log file."""
    processors = [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.dict_tracebacks,
        _human_renderer,
    ]

    if not debug:
        processors = [_filter_secrets] + processors
        target = _log_handle(log_path or default_log_path())
    else:
        target = sys.stderr

    structlog.configure(
        processors=processors,
        logger_factory=structlog.PrintLoggerFactory(file=target),
    )


def get_logger(name: str = "passvault"):
    return structlog.get_logger(name)


if not structlog.is_configured():
    silence_logging()
