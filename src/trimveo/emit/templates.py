"""Template loading.

The template directory holds ``aglsCommon.txt``: AGLS elements common to
every record (rights, publisher, ...) that are inserted verbatim into each
descriptive metadata package.
"""

from pathlib import Path

from trimveo.errors import ConfigurationError

__all__ = ["AGLS_COMMON_FILENAME", "load_agls_common"]

AGLS_COMMON_FILENAME = "aglsCommon.txt"


def load_agls_common(template_dir: Path | None) -> str | None:
    """Load the common AGLS fragment.

    Parameters
    ----------
    template_dir : Path | None
        Template directory, or None when no template is used.

    Returns
    -------
    str | None
        Fragment text with LF line endings, ending in a newline; None when
        no template directory was given.

    Raises
    ------
    ConfigurationError
        If the directory was given but the template cannot be read.
    """
    if template_dir is None:
        return None

    path = template_dir / AGLS_COMMON_FILENAME
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Failed to read template '{path}': {e}") from e

    text = text.replace("\r\n", "\n")
    if text and not text.endswith("\n"):
        text += "\n"
    return text
