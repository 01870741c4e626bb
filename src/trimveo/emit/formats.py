"""Long-term sustainable format (LTSF) allow-list."""

from collections.abc import Iterable
from pathlib import Path

from trimveo.errors import ConfigurationError

__all__ = ["LTSF_FILENAME", "FormatAllowList"]

LTSF_FILENAME = "validLTSF.txt"


class FormatAllowList:
    """Set of approved file extensions.

    Extensions are stored lower-cased with a leading dot (``.pdf``).

    Parameters
    ----------
    extensions : Iterable[str]
        Extensions, with or without the leading dot, any case.
    """

    def __init__(self, extensions: Iterable[str]) -> None:
        self._extensions = frozenset(_canonical(e) for e in extensions if e.strip())

    def __len__(self) -> int:
        return len(self._extensions)

    def __contains__(self, extension: object) -> bool:
        return isinstance(extension, str) and _canonical(extension) in self._extensions

    @classmethod
    def load(cls, path: Path) -> "FormatAllowList":
        """Load the allow-list from a text file.

        One extension per line; the first whitespace-separated token is
        used. Blank lines and lines starting with ``!`` or ``#`` are ignored.

        Raises
        ------
        ConfigurationError
            If the file cannot be read or lists no extensions.
        """
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Failed to read format allow-list '{path}': {e}") from e

        extensions = []
        for line in text.splitlines():
            line = line.strip()
            if not line or line.startswith(("!", "#")):
                continue
            extensions.append(line.split()[0])

        if not extensions:
            raise ConfigurationError(f"Format allow-list '{path}' lists no extensions")
        return cls(extensions)

    def is_approved_format(self, extension: str) -> bool:
        """Check a file extension (e.g. '.pdf' or 'PDF')."""
        return extension in self

    def is_approved_file(self, filename: str) -> bool:
        """Check a file name by its extension; a name without '.' is not approved."""
        dot = filename.rfind(".")
        if dot == -1:
            return False
        return self.is_approved_format(filename[dot:])


def _canonical(extension: str) -> str:
    extension = extension.strip().lower()
    return extension if extension.startswith(".") else "." + extension
