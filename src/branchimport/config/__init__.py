"""
Configuration management with typed Pydantic models.

Supports YAML files with environment variable interpolation.
"""

from branchimport.config.loader import load_config
from branchimport.config.settings import AppConfig, IngestionConfig, LoggingConfig

__all__ = [
    "AppConfig",
    "IngestionConfig",
    "LoggingConfig",
    "load_config",
]
