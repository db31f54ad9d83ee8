"""
Core business exceptions for the preloader application.

This module defines a hierarchy of custom exceptions to allow for granular
error handling and clear separation of failure domains.
"""


class PreloaderError(Exception):
    """Base exception for all component-specific errors."""
    pass


# --- Configuration Errors ---

class ConfigurationError(PreloaderError):
    """Raised for malformed or out-of-range run configuration."""
    pass


# --- Infrastructure Errors ---

class InfrastructureError(PreloaderError):
    """Base class for errors related to external systems (network, disk)."""
    pass


class RangeQueryError(InfrastructureError):
    """Raised when a range query gets no response or a non-200 status."""
    pass


class PersistenceError(InfrastructureError):
    """Raised when the output or checkpoint file cannot be written."""
    pass


# --- Domain/Business Logic Errors ---

class DomainError(PreloaderError):
    """Base class for errors related to business logic failures."""
    pass


class CodecError(DomainError):
    """Raised when bytes do not form a well-formed 24-byte record."""
    pass


class CheckpointFormatError(DomainError):
    """Raised when a checkpoint file cannot be interpreted."""
    pass


# --- Control Flow ---

class FetchCancelled(PreloaderError):
    """Raised inside a worker when a shutdown was requested mid-group."""
    pass
