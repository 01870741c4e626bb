"""Conversion configuration and result dataclasses."""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from trimveo.audit.helpers import get_user_id
from trimveo.audit.logger import LEVELS
from trimveo.emit.metadata import DEFAULT_LABEL_PREFIX
from trimveo.errors import ConfigurationError
from trimveo.normalize import DUPLICATE_POLICIES
from trimveo.utils import resolve_hash_algorithm

_PATH_FIELDS = ("output_dir", "source_dir", "support_dir", "template_dir")


@dataclass
class ConversionConfig:
    """Configuration for a conversion run.

    Attributes
    ----------
    output_dir : Path
        Directory receiving packages, reports and the run log.
    support_dir : Path | None
        Directory holding validLTSF.txt and, optionally, VEOReadme.txt.
        Required to run a conversion.
    source_dir : Path | None
        Directory content files are resolved against. When None, each
        export's own directory is used.
    template_dir : Path | None
        Directory holding aglsCommon.txt. When None no common AGLS
        fragment is added.
    hash_algorithm : str
        Package hash algorithm (default: "SHA-512").
    rdf_id_prefix : str | None
        Prefix for rdf:about URIs. None uses file:///.
    user_id : str | None
        Initiator recorded in package histories; the current OS user
        when None.
    label_prefix : str
        Prefix of information object labels.
    sign : bool
        Sign packages when sealing.
    signer_id : str | None
        Signing identity; defaults to ``user_id`` when signing.
    keep_package_dirs : bool
        Keep ``<name>.veo`` directories next to the sealed zips.
    duplicate_policy : str
        "last_wins" (default) or "reject" for repeated identifiers.
    recursive : bool
        Walk sub-directories of directory inputs.
    glob_pattern : str
        Files picked up from directory inputs.
    log_level : str
        Lowest event level written to events.jsonl.
    """

    output_dir: Path = Path("out")
    support_dir: Path | None = None
    source_dir: Path | None = None
    template_dir: Path | None = None
    hash_algorithm: str = "SHA-512"
    rdf_id_prefix: str | None = None
    user_id: str | None = None
    label_prefix: str = DEFAULT_LABEL_PREFIX
    sign: bool = True
    signer_id: str | None = None
    keep_package_dirs: bool = False
    duplicate_policy: str = "last_wins"
    recursive: bool = True
    glob_pattern: str = "*"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        """Set defaults and validate.

        Raises
        ------
        ConfigurationError
            If any value is out of range.
        """
        for name in _PATH_FIELDS:
            value = getattr(self, name)
            if value is not None:
                setattr(self, name, Path(value))

        try:
            resolve_hash_algorithm(self.hash_algorithm)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        if self.duplicate_policy not in DUPLICATE_POLICIES:
            raise ConfigurationError(
                f"duplicate_policy must be one of {DUPLICATE_POLICIES}, got {self.duplicate_policy!r}"
            )

        if self.log_level not in LEVELS:
            raise ConfigurationError(f"log_level must be one of {LEVELS}, got {self.log_level!r}")

        if self.user_id is None:
            self.user_id = get_user_id()

        if self.sign and not self.signer_id:
            self.signer_id = self.user_id

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = asdict(self)
        for name in _PATH_FIELDS:
            value = getattr(self, name)
            data[name] = str(value) if value is not None else None
        return data


@dataclass
class ConversionResult:
    """Results from a conversion run.

    Attributes
    ----------
    success : bool
        True when the run completed; individual roots or files may still
        have failed (see ``failures``).
    files_found : int
        Export files discovered.
    files_read : int
        Exports whose header bound and whose rows were read.
    files_skipped : int
        Exports (and missing inputs) skipped whole.
    files_ignored : int
        Files found in input directories that are not exports.
    rows_rejected : int
        Rows dropped for a bad identifier or a rejected duplicate.
    records_defined : int
        Records defined across all exports.
    stubs_created : int
        Stubs added for undefined containers.
    roots : int
        Roots attempted.
    packages_written : int
        Packages sealed.
    roots_failed : int
        Roots whose package was abandoned.
    warnings : int
        Advisory warnings (record types, formats, cycles).
    output_files : dict[str, str]
        Report name to path.
    file_failures : list[str]
        One line per skipped file or missing input.
    root_failures : list[str]
        One line per failed root.
    error_message : str | None
        Error message if the run could not complete.
    """

    success: bool
    files_found: int = 0
    files_read: int = 0
    files_skipped: int = 0
    files_ignored: int = 0
    rows_rejected: int = 0
    records_defined: int = 0
    stubs_created: int = 0
    roots: int = 0
    packages_written: int = 0
    roots_failed: int = 0
    warnings: int = 0
    output_files: dict[str, str] = field(default_factory=dict)
    file_failures: list[str] = field(default_factory=list)
    root_failures: list[str] = field(default_factory=list)
    error_message: str | None = None

    @property
    def failures(self) -> list[str]:
        """Skipped files followed by failed roots."""
        return [*self.file_failures, *self.root_failures]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)
