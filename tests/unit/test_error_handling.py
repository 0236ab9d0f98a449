"""
Tests for error handling utilities.
"""
import pandas as pd
import pytest

from globe_geo.utils.error_handling import (
    handle_empty_sequence,
    log_dataframe_summary,
    require_non_empty,
    validate_columns_exist,
)
from globe_geo.utils.exceptions import DataValidationError, EmptyInputError


class TestRequireNonEmpty:
    """Tests for require_non_empty."""

    def test_non_empty(self):
        require_non_empty([1])

    def test_empty_raises(self):
        with pytest.raises(EmptyInputError, match="cluster members"):
            require_non_empty([], "cluster members")


class TestHandleEmptySequence:
    """Tests for handle_empty_sequence decorator."""

    def test_short_circuits_empty_list(self):
        calls = []

        @handle_empty_sequence()
        def process(points):
            calls.append(points)
            return ['processed']

        assert process([]) == []
        assert calls == []

    def test_runs_for_non_empty(self):
        @handle_empty_sequence()
        def process(points):
            return [p * 2 for p in points]

        assert process([1, 2]) == [2, 4]

    def test_custom_return_value(self):
        @handle_empty_sequence(return_value=dict)
        def process(points):
            return {'n': len(points)}

        assert process(()) == {}

    def test_method_uses_first_sequence_argument(self):
        class Worker:
            @handle_empty_sequence()
            def run(self, items):
                return items

        assert Worker().run([]) == []
        assert Worker().run([1]) == [1]

    def test_keyword_argument(self):
        @handle_empty_sequence()
        def process(points=None):
            return ['ran']

        assert process(points=[]) == []

    def test_preserves_name(self):
        @handle_empty_sequence()
        def process(points):
            return points

        assert process.__name__ == 'process'


class TestValidateColumnsExist:
    """Tests for validate_columns_exist."""

    def test_all_present(self):
        df = pd.DataFrame({'id': [1], 'latitude': [0.0], 'longitude': [0.0]})
        validate_columns_exist(df, ['id', 'latitude', 'longitude'])

    def test_missing(self):
        df = pd.DataFrame({'id': [1]})
        with pytest.raises(DataValidationError, match="latitude"):
            validate_columns_exist(df, ['id', 'latitude'], "photos")


class TestLogDataframeSummary:
    """Tests for log_dataframe_summary."""

    def test_with_coordinates(self):
        df = pd.DataFrame({'latitude': [1.0, 2.0], 'longitude': [3.0, 4.0]})
        log_dataframe_summary(df, "points")

    def test_empty_frame(self):
        log_dataframe_summary(pd.DataFrame(), "empty", include_columns=False)
