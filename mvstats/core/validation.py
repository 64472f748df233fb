"""
Input validation utilities for mvstats.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion (except np.asarray on array-likes)
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages
"""

from typing import Any, Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from mvstats.core.exceptions import (
    DimensionError,
    InvalidConfigError,
    ValidationError,
)


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Validate and convert input to a floating point numpy array.

    Rejects inputs that result in object dtype (indicating mixed types or
    ragged nesting) or in a non-numeric dtype. Booleans and integers are
    promoted to float64.

    Args:
        array: Input to validate
        name: Parameter name for error messages

    Returns:
        numpy.ndarray with floating dtype

    Raises:
        ValidationError: If input cannot be converted to numeric array
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e

    if result.dtype == object:
        raise ValidationError(
            f"{name}: converted to object dtype, indicating mixed types or "
            f"ragged data"
        )

    if result.dtype != bool and not np.issubdtype(result.dtype, np.number):
        raise ValidationError(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data"
        )

    if not np.issubdtype(result.dtype, np.floating):
        result = result.astype(np.float64)

    return result


def check_finite(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains no NaN or Inf values.

    Raises:
        ValidationError: If array contains non-finite values
    """
    if not np.all(np.isfinite(array)):
        n_nan = int(np.sum(np.isnan(array)))
        n_inf = int(np.sum(np.isinf(array)))
        raise ValidationError(
            f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf)"
        )


def check_not_empty(array: NDArray, name: str) -> None:
    """
    Verify array has at least one element.

    Raises:
        ValidationError: If array is empty
    """
    if array.size == 0:
        raise ValidationError(f"{name}: empty array with shape {array.shape}")


def check_consistent_length(
    *arrays: NDArray,
    names: tuple[str, ...]
) -> None:
    """
    Verify all arrays have the same length (first dimension).

    Args:
        *arrays: Arrays to check
        names: Parameter names for error messages (must match number of arrays)

    Raises:
        ValueError: If number of names doesn't match number of arrays
        DimensionError: If arrays have inconsistent lengths
    """
    if len(arrays) != len(names):
        raise ValueError(
            f"Number of arrays ({len(arrays)}) must match number of names ({len(names)})"
        )

    if len(arrays) < 2:
        return

    lengths = [arr.shape[0] for arr in arrays]
    if len(set(lengths)) > 1:
        details = ", ".join(f"{name}={length}" for name, length in zip(names, lengths))
        raise DimensionError(f"Inconsistent lengths: {details}")


def check_open_unit_interval(value: float, name: str) -> float:
    """
    Verify a scalar lies strictly between 0 and 1.

    Used for significance thresholds and chance levels.

    Raises:
        InvalidConfigError: If value is not a real number in (0, 1)
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, np.floating)):
        raise InvalidConfigError(
            f"{name} must be a number in (0, 1), got {value!r}",
            field=name, value=value,
        )
    if not (0.0 < float(value) < 1.0):
        raise InvalidConfigError(
            f"{name} must be in (0, 1), got {value}",
            field=name, value=value,
        )
    return float(value)


def check_positive_int(value: int, name: str) -> int:
    """
    Verify a scalar is an integer >= 1.

    Raises:
        InvalidConfigError: If value is not an integer or is < 1
    """
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidConfigError(
            f"{name} must be an integer >= 1, got {value!r}",
            field=name, value=value,
        )
    if value < 1:
        raise InvalidConfigError(
            f"{name} must be >= 1, got {value}",
            field=name, value=value,
        )
    return int(value)


def check_choice(value: Any, valid: Sequence[Any], name: str) -> Any:
    """
    Verify a configuration value is one of a fixed set.

    Raises:
        InvalidConfigError: If value is not in valid
    """
    if value not in valid:
        raise InvalidConfigError(
            f"{name} must be one of {tuple(valid)}, got {value!r}",
            field=name, value=value, valid=valid,
        )
    return value
