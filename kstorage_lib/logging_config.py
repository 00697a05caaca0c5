from __future__ import annotations
import logging
from pathlib import Path
import yaml
from typing import Optional

from kstorage_lib.config import config_path


def configure_logging(settings_path: Optional[Path] = None) -> logging.Logger:
    """Configure root logging for the application.

    Establishes an early NOTSET basic config so the settings file can be
    read, then reconfigures the root logger to the `log_level` found in the
    settings (WARNING when absent or unreadable). Returns a module logger
    for the caller.
    """
    # Minimal early config so other imports can emit without error
    logging.basicConfig(level=logging.NOTSET, format='%(asctime)s INFO %(message)s')
    DEFAULT_LOG_LEVEL = logging.WARNING

    cfg_path = config_path(settings_path)
    if cfg_path.exists():
        try:
            with cfg_path.open('r', encoding='utf-8') as _f:
                _cfg = yaml.safe_load(_f) or {}
            _lvl = _cfg.get('log_level') if isinstance(_cfg, dict) else None
            if isinstance(_lvl, str):
                _numeric = getattr(logging, _lvl.upper(), None)
                if isinstance(_numeric, int):
                    DEFAULT_LOG_LEVEL = _numeric
        except (OSError, yaml.YAMLError):
            # If settings parse fails, fall back to default level
            DEFAULT_LOG_LEVEL = logging.WARNING

    # Reconfigure root handlers to use the selected level and format
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
    logging.basicConfig(level=DEFAULT_LOG_LEVEL, format='%(asctime)s %(levelname)s [%(name)s]: %(message)s')
    logger = logging.getLogger(__name__)
    logger.debug("Log level set to: %s", logging.getLevelName(DEFAULT_LOG_LEVEL))

    return logger
