"""Utility functions and helpers."""

from .logger import setup_logger, get_logger
from .config_loader import load_config, save_config, config_from_dict

__all__ = [
    'setup_logger',
    'get_logger',
    'load_config',
    'save_config',
    'config_from_dict'
]
