"""
Logging module for cmdgroup.
This module provides functionality to set up logging and the no-op log sink.
"""

from .setup import ContextAdapter, JsonFormatter, MainFormatter, null_logger, setup_logging, validate_logger

__all__ = ["setup_logging", "ContextAdapter", "null_logger", "validate_logger", "JsonFormatter", "MainFormatter"]
