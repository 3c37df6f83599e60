"""
Logging infrastructure for VCR.

Provides component loggers, the repository action log, and operation tracking.
"""

from .logger import (
    VCRLogger,
    get_vcr_logger,
    initialize_logging,
    get_logger_instance,
    log_action,
)

from .decorators import track_operation

__all__ = [
    # Logger
    "VCRLogger",
    "get_vcr_logger",
    "initialize_logging",
    "get_logger_instance",
    "log_action",
    # Decorators
    "track_operation",
]
