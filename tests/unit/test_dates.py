"""Tests for TRIM date normalization."""

import pytest

from trimveo.errors import DateFormatError
from trimveo.normalize import normalize_date


@pytest.mark.unit
@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2021", "2021"),
        ("202105", "2021-05"),
        ("20210504", "2021-05-04"),
        ("2021050413", "2021-05-04T13:00"),
        ("202105041330", "2021-05-04T13:30"),
        ("20210504133015", "2021-05-04T13:30:15"),
        ("202105041330159", "2021-05-04T13:30:15"),
        ("20210504133015999", "2021-05-04T13:30:15"),
    ],
)
def test_normalize_supported_lengths(value: str, expected: str) -> None:
    """Test each supported digit length keeps its precision."""
    assert normalize_date(value) == expected


@pytest.mark.unit
@pytest.mark.parametrize(
    "value",
    [
        None,
        "",
        "2",
        "20",
        "202",
        "20210",
        "2021050",
        "202105041",
        "20210504133",
        "2021050413301",
    ],
)
def test_normalize_rejects_unsupported_lengths(value: str | None) -> None:
    """Test lengths other than 4, 6, 8, 10, 12 and 14+ are rejected."""
    with pytest.raises(DateFormatError):
        normalize_date(value)


@pytest.mark.unit
def test_normalize_rejects_non_digits() -> None:
    """Test a supported length with non-digit characters is rejected."""
    with pytest.raises(DateFormatError, match="2021-504"):
        normalize_date("2021-504")


@pytest.mark.unit
def test_date_format_error_reports_length() -> None:
    """Test the error message names the offending length."""
    with pytest.raises(DateFormatError, match="length 7"):
        normalize_date("2021050")
