#!/usr/bin/env python3
"""
Core Module

Shared components for the iMIP microservice.

COMPONENTS:
    - config/: Environment driven configuration (ImipConfig, LoggingConfig)
    - logger.py: Service logger setup

USAGE:
    from core.config import get_settings
    from core.logger import setup_service_logger
"""

__version__ = "2.0.0"
