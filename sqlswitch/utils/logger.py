import logging
import logging.handlers
import os

from sqlswitch.config import config

__all__ = ["setup_logger", "set_console_level"]

# ---------------------------------------------------------------------------
# Root logger configuration (one-time) – idempotent
# ---------------------------------------------------------------------------

def _configure_root_logger() -> None:
    root = logging.getLogger()

    log_cfg = config.get("logging", {})
    lvl_cfg = log_cfg.get("level", {})

    # ---------- Console handler (ensure one human-readable) ----------
    console_level = getattr(logging, str(lvl_cfg.get("console", "WARNING")).upper(), logging.WARNING)

    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler) for h in root.handlers):
        ch = logging.StreamHandler()
        ch.setLevel(console_level)
        ch.setFormatter(logging.Formatter("%(name)s - %(levelname)s - %(message)s"))
        root.addHandler(ch)

    # ---------- Rotating file handler (optional) ----------
    if not log_cfg.get("file", {}).get("enabled", False):
        return

    rotation_cfg = log_cfg.get("rotation", {})
    max_bytes = rotation_cfg.get("max_bytes", 10 * 1024 * 1024)
    backup_count = rotation_cfg.get("backup_count", 5)
    encoding = rotation_cfg.get("encoding", "utf-8")

    file_level = getattr(logging, str(lvl_cfg.get("file", "DEBUG")).upper(), logging.DEBUG)

    logs_dir = config.get("base_dirs", {}).get("logs", "logs")
    os.makedirs(logs_dir, exist_ok=True)
    file_path = os.path.join(logs_dir, "sqlswitch.log")

    if not any(isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", "") == file_path for h in root.handlers):
        fh = logging.handlers.RotatingFileHandler(
            file_path, mode="a", maxBytes=max_bytes, backupCount=backup_count, encoding=encoding
        )
        fh.setLevel(file_level)
        fh.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        root.addHandler(fh)


# ---------------------------------------------------------------------------
# Public helper
# ---------------------------------------------------------------------------


def setup_logger(name: str) -> logging.Logger:
    _configure_root_logger()

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    return logger


def set_console_level(level: str) -> None:
    """Change the level of the console handler, e.g. for a ``--verbose`` run."""
    _configure_root_logger()
    numeric_level = getattr(logging, str(level).upper(), logging.WARNING)
    for handler in logging.getLogger().handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
            handler.setLevel(numeric_level)
