"""Low-level reading of tab-separated TRIM exports."""

from collections.abc import Iterator

__all__ = [
    "detect_encoding",
    "normalize_line_endings",
    "split_row",
    "iter_rows",
]

_UTF16_BOMS = (b"\xff\xfe", b"\xfe\xff")


def detect_encoding(file_bytes: bytes) -> str:
    """Detect encoding of export bytes using deterministic strategy.

    TRIM writes UTF-16 with a byte order mark. Exports that have been
    re-saved by other tools are accepted too.

    Parameters
    ----------
    file_bytes : bytes
        Complete file content as bytes.

    Returns
    -------
    str
        Codec name: utf-16, utf-16-le, utf-8-sig, utf-8 or latin-1.
    """
    if file_bytes.startswith(_UTF16_BOMS):
        return "utf-16"

    if b"\x00" in file_bytes[:4096]:
        return "utf-16-le"

    if file_bytes.startswith(b"\xef\xbb\xbf"):
        return "utf-8-sig"

    try:
        file_bytes.decode("utf-8")
        return "utf-8"
    except UnicodeDecodeError:
        pass

    return "latin-1"


def normalize_line_endings(content: str) -> str:
    """Normalize line endings to LF.

    Parameters
    ----------
    content : str
        Text content with potentially mixed line endings.

    Returns
    -------
    str
        Text with normalized line endings (\\n only).
    """
    content = content.replace("\r\n", "\n")
    return content.replace("\r", "\n")


def split_row(line: str, width: int | None = None) -> list[str]:
    """Split one line at tabs, padding with empty cells up to ``width``."""
    cells = line.split("\t")
    if width is not None and len(cells) < width:
        cells.extend([""] * (width - len(cells)))
    return cells


def iter_rows(content: str) -> Iterator[tuple[int, list[str]]]:
    """Yield ``(line_no, cells)`` for every non-blank line.

    Line numbers are 1-based positions in the file, so blank lines still
    count. Rows are not padded; the caller knows the header width.
    """
    for line_no, line in enumerate(normalize_line_endings(content).split("\n"), start=1):
        if not line.strip():
            continue
        yield line_no, split_row(line)
