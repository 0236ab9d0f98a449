"""
Data loading functions with validation.

Turns photo rows (CSV files, DataFrames, or plain mappings) into GeoPoints.
Rows without coordinates are photos that were never geotagged and are
skipped quietly; rows whose coordinates fail validation are dropped and
counted so they never reach the geometry code.
"""
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional
import math
import pandas as pd
from pydantic import ValidationError

from globe_geo.core.clustering import GeoPoint
from globe_geo.core.geometry import validate as validate_coordinate
from globe_geo.data.schemas import PhotoRecord
from globe_geo.utils.error_handling import log_dataframe_summary, validate_columns_exist
from globe_geo.utils.exceptions import DataLoadError, DataValidationError
from globe_geo.utils.logging_config import get_logger

logger = get_logger(__name__)

REQUIRED_COLUMNS = ('id', 'latitude', 'longitude')
_CORE_FIELDS = {'id', 'latitude', 'longitude', 'name'}


def load_points_csv(
    file_path: Path,
    validate: bool = True,
    max_invalid_fraction: float = 0.10,
    sample_rows: Optional[int] = None,
) -> pd.DataFrame:
    """
    Load and validate geotagged photo rows from CSV.

    Args:
        file_path: Path to CSV with at least id, latitude, longitude columns
        validate: If True, validate rows against the PhotoRecord schema
        max_invalid_fraction: Fail if more than this share of geotagged rows is invalid
        sample_rows: If specified, only load first N rows

    Returns:
        DataFrame of geotagged, valid rows

    Raises:
        DataLoadError: If file not found or cannot be read
        DataValidationError: If columns are missing or too many rows are invalid

    Example:
        >>> df = load_points_csv(Path("exports/photos.csv"))
        >>> points = frame_to_points(df)
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise DataLoadError(f"Points file not found: {file_path}")

    logger.info("loading_points", file=str(file_path), sample_rows=sample_rows)

    try:
        df = pd.read_csv(file_path, nrows=sample_rows, dtype={'id': str})
    except Exception as e:
        raise DataLoadError(f"Failed to read points CSV: {e}") from e

    validate_columns_exist(df, REQUIRED_COLUMNS, "points CSV")

    geotagged = df['latitude'].notna() & df['longitude'].notna()
    skipped = int((~geotagged).sum())
    if skipped:
        logger.info("skipped_ungeotagged", rows=skipped)
    df = df[geotagged].copy()

    if validate and len(df) > 0:
        original_row_count = len(df)
        df, validation_errors = _validate_dataframe(df)

        if validation_errors:
            error_rate = len(validation_errors) / original_row_count
            logger.warning(
                "points_validation_errors",
                total_rows=original_row_count,
                invalid_rows=len(validation_errors),
                error_rate=f"{error_rate:.2%}"
            )

            if error_rate > max_invalid_fraction:
                raise DataValidationError(
                    f"Points validation failed: {len(validation_errors)} invalid rows",
                    invalid_rows=len(validation_errors),
                    details={
                        'total_rows': original_row_count,
                        'error_rate': error_rate,
                        'sample_errors': validation_errors[:5]
                    }
                )

    log_dataframe_summary(df, "points")
    logger.info("points_loaded", rows=len(df), skipped=skipped)
    return df


def _clean_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    # pandas fills missing cells with NaN; the schema expects None
    cleaned = {}
    for key, value in row.items():
        if isinstance(value, float) and math.isnan(value):
            value = None
        cleaned[key] = value
    return cleaned


def _validate_dataframe(df: pd.DataFrame) -> tuple[pd.DataFrame, List[dict]]:
    """
    Validate DataFrame rows against the PhotoRecord schema.

    Returns:
        Tuple of (validated_df, list_of_validation_errors).
        Invalid rows are dropped from the DataFrame.
    """
    validation_errors = []
    valid_indices = []

    for idx, row in zip(df.index, df.to_dict('records')):
        row_dict = _clean_row(row)
        try:
            PhotoRecord(**row_dict)
            valid_indices.append(idx)
        except ValidationError as e:
            validation_errors.append({
                'row_index': idx,
                'errors': e.errors(include_url=False),
                'row_sample': {k: row_dict.get(k) for k in REQUIRED_COLUMNS},
            })

    return df.loc[valid_indices].copy(), validation_errors


def _record_to_point(record: Mapping[str, Any]) -> Optional[GeoPoint[dict]]:
    record = _clean_row(record)
    if record.get('id') is None:
        return None

    try:
        latitude = float(record.get('latitude'))
        longitude = float(record.get('longitude'))
    except (TypeError, ValueError):
        return None

    point = GeoPoint(
        id=str(record['id']),
        latitude=latitude,
        longitude=longitude,
        name=record.get('name'),
        payload={k: v for k, v in record.items() if k not in _CORE_FIELDS},
    )
    if not validate_coordinate(point):
        return None
    return point


def records_to_points(records: Iterable[Mapping[str, Any]]) -> List[GeoPoint[dict]]:
    """
    Convert mappings with id/latitude/longitude into GeoPoints.

    Extra keys (caption, is_favorite, taken_at, ...) become the payload.
    Records with a missing id or invalid coordinates are dropped.
    """
    points: List[GeoPoint[dict]] = []
    dropped = 0

    for record in records:
        point = _record_to_point(record)
        if point is None:
            dropped += 1
            continue
        points.append(point)

    if dropped:
        logger.warning("invalid_records_dropped", dropped=dropped, kept=len(points))
    return points


def frame_to_points(df: pd.DataFrame) -> List[GeoPoint[dict]]:
    """Convert a points DataFrame (see load_points_csv) into GeoPoints, preserving row order."""
    validate_columns_exist(df, REQUIRED_COLUMNS, "points DataFrame")
    return records_to_points(df.to_dict('records'))
