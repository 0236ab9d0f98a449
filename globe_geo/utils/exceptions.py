"""
Custom exception hierarchy for globe-geo.

All custom exceptions inherit from GlobeGeoError for easy catching.
"""


class GlobeGeoError(Exception):
    """Base exception for all globe-geo errors."""
    pass


class ConfigurationError(GlobeGeoError):
    """Configuration-related errors.

    Raised when configuration loading or validation fails.

    Example:
        >>> raise ConfigurationError("Invalid viewport config: thresholds must ascend")
    """
    pass


class DataValidationError(GlobeGeoError):
    """Data validation errors.

    Raised when input records fail validation checks.

    Attributes:
        invalid_rows: Number of rows that failed validation
        details: Dictionary with validation error details
    """

    def __init__(self, message: str, invalid_rows: int = 0, details: dict = None):
        super().__init__(message)
        self.invalid_rows = invalid_rows
        self.details = details or {}

    def __str__(self):
        base = super().__str__()
        if self.invalid_rows > 0:
            return f"{base} (invalid_rows={self.invalid_rows})"
        return base


class DataLoadError(GlobeGeoError):
    """Data loading errors.

    Raised when point files cannot be loaded or parsed.

    Example:
        >>> raise DataLoadError("Failed to load photo points: file not found")
    """
    pass


class InvalidInputError(GlobeGeoError, ValueError):
    """Invalid argument passed to a geometry, clustering or viewport call.

    Raised synchronously to the caller instead of substituting a default,
    so upstream data bugs are not masked.

    Example:
        >>> raise InvalidInputError("fraction must be within [0, 1], got 1.5")
    """
    pass


class EmptyInputError(InvalidInputError):
    """An operation that needs at least one point received none.

    Example:
        >>> raise EmptyInputError("Cannot calculate centroid of empty point set")
    """
    pass
