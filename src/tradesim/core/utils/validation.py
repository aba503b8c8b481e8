"""
Validation utilities for core domain models.

Provides consistent validation across the application.
"""

import math

from tradesim.core.exceptions.engine import ValidationError


def validate_finite(value: float, param_name: str) -> float:
    """Validate that a numeric value is a finite number.

    Raises:
        ValidationError: If value is NaN or infinite
    """
    if not isinstance(value, int | float) or not math.isfinite(value):
        raise ValidationError(f"{param_name} must be a finite number, got {value}")
    return value


def validate_positive(value: float, param_name: str) -> float:
    """Validate that a numeric value is positive.

    Args:
        value: Value to validate
        param_name: Parameter name for error messages

    Returns:
        The validated value

    Raises:
        ValidationError: If value is not positive
    """
    validate_finite(value, param_name)
    if value <= 0:
        raise ValidationError(f"{param_name} must be positive, got {value}")
    return value


def validate_non_negative(value: float, param_name: str) -> float:
    """Validate that a numeric value is zero or positive.

    Raises:
        ValidationError: If value is negative
    """
    validate_finite(value, param_name)
    if value < 0:
        raise ValidationError(f"{param_name} must be non-negative, got {value}")
    return value


def validate_percentage(value: float, param_name: str = "percentage") -> float:
    """Validate that a value is a valid percentage (0-100].

    Args:
        value: Value to validate
        param_name: Parameter name for error messages

    Returns:
        The validated percentage

    Raises:
        ValidationError: If value is not between 0 and 100
    """
    validate_finite(value, param_name)
    if value <= 0 or value > 100:
        raise ValidationError(f"{param_name} must be between 0 and 100, got {value}")
    return value


def validate_fraction(value: float, param_name: str = "fraction") -> float:
    """Validate that a value is a fraction in (0, 1].

    Raises:
        ValidationError: If value is not between 0 and 1
    """
    validate_finite(value, param_name)
    if value <= 0 or value > 1:
        raise ValidationError(f"{param_name} must be between 0 and 1, got {value}")
    return value


def validate_hour(value: int, param_name: str = "hour") -> int:
    """Validate that a value is an hour of day (0-23).

    Raises:
        ValidationError: If value is outside 0-23
    """
    if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= 23:
        raise ValidationError(f"{param_name} must be an integer between 0 and 23, got {value}")
    return value
