import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

import magicedit_config


def _log_file() -> str:
    return os.path.join(str(magicedit_config.STATE_DIR), "logs", "magicedit.log")


def _default_level() -> str:
    env_level = os.getenv("MAGICEDIT_LOG_LEVEL")
    if env_level:
        return env_level.upper()
    section = magicedit_config.load_config().get("logging", {})
    return str(section.get("level", "INFO")).upper()


def configure_logging(level: Optional[str] = None) -> str:
    desired_level = getattr(logging, (level or _default_level()).upper(), logging.INFO)
    root = logging.getLogger()
    if getattr(configure_logging, "_configured", False):
        root.setLevel(desired_level)
        return configure_logging._log_file  # type: ignore[attr-defined]

    log_file = _log_file()
    os.makedirs(os.path.dirname(log_file), exist_ok=True)

    for handler in list(root.handlers):
        root.removeHandler(handler)

    root.setLevel(desired_level)
    formatter = logging.Formatter("[%(asctime)s] [%(levelname)s] %(name)s: %(message)s")

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    file_handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8")
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    configure_logging._configured = True  # type: ignore[attr-defined]
    configure_logging._log_file = log_file  # type: ignore[attr-defined]
    root.debug("Logging configured. Log file: %s", log_file)
    return log_file


def get_log_file() -> str:
    return getattr(configure_logging, "_log_file", _log_file())
