"""
Custom exceptions for Pulse.

Expected edge cases (empty samples, short history, flat baselines) are
modelled as results, not errors. These exceptions cover caller-contract
violations and bad input data only.
"""


class PulseError(Exception):
    """Base exception for all Pulse failures."""
    pass


class InvalidInputError(PulseError, ValueError):
    """Raised for non-finite numbers or out-of-range statistical arguments."""
    pass


class AggregationError(PulseError):
    """Raised when a time range or bucket width cannot be bucketed."""
    pass


class DataValidationError(PulseError):
    """Raised when telemetry fails schema validation."""
    pass


class IngestionError(PulseError):
    """Raised when an events file cannot be read."""
    pass


class ConfigurationError(PulseError):
    """Raised when configuration is invalid or missing."""
    pass
