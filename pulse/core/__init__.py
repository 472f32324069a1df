"""
Core module: Configuration, logging, and exception handling.
"""

from .config import Config, config
from .exceptions import (
    AggregationError,
    ConfigurationError,
    DataValidationError,
    IngestionError,
    InvalidInputError,
    PulseError,
)

__all__ = [
    "Config",
    "config",
    "PulseError",
    "InvalidInputError",
    "AggregationError",
    "DataValidationError",
    "IngestionError",
    "ConfigurationError",
]
