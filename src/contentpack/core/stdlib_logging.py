from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from contentpack.core.utils.io import ensure_directory

_CONFIGURED_LOG_PATH: str | None = None
_FILE_HANDLER: logging.Handler | None = None


def _level_from_name(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def configure_stdlib_logging(*, log_path: Path, level: str = "INFO") -> None:
    """Configure stdlib logging to write to ``log_path``.

    Idempotent per-process: if already configured for the same file, no-op.
    Switching paths replaces the previously installed handler.
    """
    global _CONFIGURED_LOG_PATH, _FILE_HANDLER

    resolved = str(Path(log_path).resolve())
    if _CONFIGURED_LOG_PATH == resolved and _FILE_HANDLER is not None:
        return

    ensure_directory(Path(resolved).parent)

    root = logging.getLogger()
    root.setLevel(_level_from_name(level))

    if _FILE_HANDLER is not None:
        root.removeHandler(_FILE_HANDLER)
        _FILE_HANDLER.close()
        _FILE_HANDLER = None

    fh = logging.FileHandler(resolved, encoding="utf-8")
    fh.setLevel(_level_from_name(level))
    fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(fh)

    _FILE_HANDLER = fh
    _CONFIGURED_LOG_PATH = resolved


def configure_from_config(repo_root: Optional[Path] = None) -> Optional[Path]:
    """Install the file handler described by the ``logging`` config section.

    Returns the log path, or None when stdlib logging is disabled.
    """
    from contentpack.core.config.domains import LoggingConfig

    cfg = LoggingConfig(repo_root=repo_root)
    log_path = cfg.resolve_stdlib_log_path()
    if log_path is None:
        return None
    configure_stdlib_logging(log_path=log_path, level=cfg.stdlib_level)
    return log_path


def reset_stdlib_logging_for_tests() -> None:
    """Test-only: remove the installed file handler."""
    global _CONFIGURED_LOG_PATH, _FILE_HANDLER
    if _FILE_HANDLER is not None:
        logging.getLogger().removeHandler(_FILE_HANDLER)
        _FILE_HANDLER.close()
    _CONFIGURED_LOG_PATH = None
    _FILE_HANDLER = None


__all__ = ["configure_stdlib_logging", "configure_from_config", "reset_stdlib_logging_for_tests"]
