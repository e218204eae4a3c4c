"""
Validation and error handling for the rtprofiler package.

This module provides input validation and error handling
with consistent error reporting across the application.
"""

from .exceptions import (
    ErrorSeverity,
    ValidationError,
    handle_error,
    handle_config_error,
    handle_subprocess_error,
    handle_cli_error,
)

from .validators import (
    validate_enum_choice,
    validate_non_empty_string,
    validate_positive_float,
    validate_positive_integer,
)

__all__ = [
    "ErrorSeverity",
    "ValidationError",
    "handle_error",
    "handle_config_error",
    "handle_subprocess_error",
    "handle_cli_error",
    "validate_enum_choice",
    "validate_non_empty_string",
    "validate_positive_float",
    "validate_positive_integer",
]
