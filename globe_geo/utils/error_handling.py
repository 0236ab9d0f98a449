"""
Error handling utilities for globe-geo.

Provides guards that raise the package's exceptions at the call boundary
instead of letting bad input flow into geometry code.
"""
from functools import wraps
from typing import Any, Callable, Iterable, Sequence, Set
import pandas as pd
from globe_geo.utils.logging_config import get_logger
from globe_geo.utils.exceptions import (
    DataValidationError,
    EmptyInputError,
)

logger = get_logger(__name__)


def require_non_empty(items: Sequence, name: str = "point set") -> None:
    """
    Validate that a sequence has at least one element.

    Parameters
    ----------
    items : Sequence
        Sequence to check
    name : str
        Name used in the error message

    Raises
    ------
    EmptyInputError
        If the sequence is empty
    """
    if len(items) == 0:
        raise EmptyInputError(f"{name} is empty - at least one point is required")


def handle_empty_sequence(return_value: Callable[[], Any] = list):
    """
    Decorator to short-circuit functions called with an empty sequence.

    The first list or tuple argument is inspected; when it is empty the
    wrapped function is skipped and ``return_value()`` is returned.

    Parameters
    ----------
    return_value : Callable
        Factory for the value returned on empty input (default: empty list)
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            seq = None
            for arg in list(args) + list(kwargs.values()):
                if isinstance(arg, (list, tuple)):
                    seq = arg
                    break

            if seq is not None and len(seq) == 0:
                logger.debug("empty_input_short_circuit", function=func.__name__)
                return return_value()

            return func(*args, **kwargs)
        return wrapper
    return decorator


def validate_columns_exist(
    df: pd.DataFrame,
    required_columns: Iterable[str],
    df_name: str = "DataFrame"
) -> None:
    """
    Validate that all required columns exist in DataFrame.

    Parameters
    ----------
    df : pd.DataFrame
        DataFrame to validate
    required_columns : Iterable[str]
        Required column names
    df_name : str
        Name of DataFrame for error message

    Raises
    ------
    DataValidationError
        If required columns are missing
    """
    missing_cols: Set[str] = set(required_columns) - set(df.columns)
    if missing_cols:
        raise DataValidationError(
            f"{df_name} missing required columns: {sorted(missing_cols)}. "
            f"Available columns: {sorted(df.columns.tolist())}"
        )


def log_dataframe_summary(
    df: pd.DataFrame,
    name: str,
    include_columns: bool = True
) -> None:
    """
    Log summary statistics for a point DataFrame.

    Parameters
    ----------
    df : pd.DataFrame
        DataFrame to summarize
    name : str
        Name for logging
    include_columns : bool
        Whether to log column names
    """
    log_data = {
        "dataframe": name,
        "rows": len(df),
        "columns": len(df.columns),
    }

    if include_columns:
        log_data["column_names"] = df.columns.tolist()

    if len(df) > 0 and {'latitude', 'longitude'} <= set(df.columns):
        log_data["lat_range"] = (float(df['latitude'].min()), float(df['latitude'].max()))
        log_data["lon_range"] = (float(df['longitude'].min()), float(df['longitude'].max()))

    logger.debug("dataframe_summary", **log_data)
