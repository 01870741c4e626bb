"""TRIM date normalization.

TRIM writes dates as a run of digits ``yyyymmddhhmmss`` truncated to the
precision it knows. The ISO8601 rendering keeps exactly that precision.
"""

import re

from trimveo.errors import DateFormatError

__all__ = ["normalize_date"]

_DIGITS_RE = re.compile(r"\d*", re.ASCII)


def normalize_date(value: str | None) -> str:
    """Convert a TRIM digit date into ISO8601 text.

    Parameters
    ----------
    value : str | None
        Digit string of length 4, 6, 8, 10, 12 or at least 14.

    Returns
    -------
    str
        ``YYYY``, ``YYYY-MM``, ``YYYY-MM-DD``, ``YYYY-MM-DDThh:00``,
        ``YYYY-MM-DDThh:mm`` or ``YYYY-MM-DDThh:mm:ss``. Digits past the
        fourteenth are ignored.

    Raises
    ------
    DateFormatError
        If the value is missing, has any other length, or contains
        non-digit characters within the used prefix.

    Examples
    --------
        >>> normalize_date("20210504")
        '2021-05-04'
        >>> normalize_date("2021050413")
        '2021-05-04T13:00'
    """
    if value is None:
        raise DateFormatError(value)

    length = len(value)
    if length < 14 and length not in (4, 6, 8, 10, 12):
        raise DateFormatError(value)

    digits = value[:14]
    if not _DIGITS_RE.fullmatch(digits):
        raise DateFormatError(value)

    year = digits[0:4]
    if length == 4:
        return year

    month = digits[4:6]
    if length == 6:
        return f"{year}-{month}"

    day = digits[6:8]
    if length == 8:
        return f"{year}-{month}-{day}"

    hour = digits[8:10]
    if length == 10:
        return f"{year}-{month}-{day}T{hour}:00"

    minute = digits[10:12]
    if length == 12:
        return f"{year}-{month}-{day}T{hour}:{minute}"

    second = digits[12:14]
    return f"{year}-{month}-{day}T{hour}:{minute}:{second}"
