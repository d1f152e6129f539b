"""
Service logger setup

Usage:
    from core.logger import setup_service_logger

    logger = setup_service_logger("imip_service")
"""

import logging
from pathlib import Path
from typing import Optional

from core.config.logging_config import LoggingConfig


def setup_service_logger(
    service_name: str,
    level: Optional[str] = None,
    config: Optional[LoggingConfig] = None,
) -> logging.Logger:
    """Configure the root handlers once and return the service's logger"""
    config = config or LoggingConfig.from_env()
    resolved_level = getattr(logging, (level or config.log_level).upper(), logging.INFO)

    root = logging.getLogger()
    if not getattr(root, "_isa_configured", False):
        formatter = logging.Formatter(config.log_format)

        if config.enable_console:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            root.addHandler(console_handler)

        if config.log_file:
            log_path = Path(config.log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)

        root._isa_configured = True

    root.setLevel(resolved_level)
    logger = logging.getLogger(service_name)
    logger.setLevel(resolved_level)
    return logger
