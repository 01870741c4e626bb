"""Package builder contract and the directory-backed implementation.

The emitter talks to packages only through ``PackageBuilder.open`` and the
``PackageHandle`` methods. Calls on a handle follow the emission order:
history and readme first, then for every record one information object,
its metadata packages and its content; finally ``finalize`` or ``abandon``.

``DirectoryPackageBuilder`` writes ``<name>.veo/`` under the output
directory and seals it into ``<name>.veo.zip``.
"""

import hashlib
import json
import os
import shutil
import zipfile
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Protocol, runtime_checkable

from trimveo.errors import PackageCreateError, PackageError, PackageFinalizeError
from trimveo.emit.metadata import xml_encode
from trimveo.utils import calculate_file_digest, format_digest, resolve_hash_algorithm

__all__ = [
    "CONTENT_FILENAME",
    "HISTORY_FILENAME",
    "README_FILENAME",
    "MANIFEST_FILENAME",
    "SIGNATURE_FILENAME",
    "PackageHandle",
    "PackageBuilder",
    "Signer",
    "DigestSigner",
    "DirectoryPackage",
    "DirectoryPackageBuilder",
]

CONTENT_FILENAME = "VEOContent.xml"
HISTORY_FILENAME = "VEOHistory.xml"
README_FILENAME = "VEOReadme.txt"
MANIFEST_FILENAME = "manifest.json"
SIGNATURE_FILENAME = "VEOContentSignature.json"

VERS_NAMESPACE = "http://www.prov.vic.gov.au/VERS"


# ============================================================================
# Contract
# ============================================================================


@runtime_checkable
class PackageHandle(Protocol):
    """One package being built.

    Any method may raise PackageError; the emitter treats that as a
    failure of the root being emitted.
    """

    name: str

    def add_readme(self, source: Path) -> None:
        """Add the readme shipped with every package."""
        ...

    def add_event(
        self,
        timestamp: str,
        event: str,
        initiator: str,
        description: str,
        errors: tuple[str, ...] = (),
    ) -> None:
        """Append an event to the package history."""
        ...

    def add_information_object(self, label: str | None, depth: int) -> None:
        """Start an information object at ``depth`` (the root is depth 1)."""
        ...

    def add_metadata_package(self, schema_uri: str, encoding_uri: str, content: str) -> None:
        """Attach a metadata package to the current information object."""
        ...

    def add_information_piece(self, label: str | None = None) -> None:
        """Start an information piece in the current information object."""
        ...

    def add_content_file(self, reference: str, source_path: Path) -> None:
        """Copy a file into the current information piece under ``reference``."""
        ...

    def finalize(self, sign: bool) -> Path:
        """Seal the package and return the sealed artifact's path."""
        ...

    def abandon(self) -> None:
        """Discard everything written for this package."""
        ...


class PackageBuilder(Protocol):
    """Factory for package handles."""

    def open(self, output_dir: Path, name: str, hash_algorithm: str) -> PackageHandle:
        """Create a package named ``name``, replacing any earlier one.

        Raises
        ------
        PackageCreateError
            If an earlier package cannot be removed or the new one created.
        """
        ...


class Signer(Protocol):
    """Signing identity, opaque to the emitter."""

    signer_id: str

    def sign(self, data: bytes, hash_algorithm: str) -> dict[str, Any]:
        """Return a signature block for ``data``."""
        ...


@dataclass(frozen=True)
class DigestSigner:
    """Signer that binds an identity to the digest of the content file.

    Attributes
    ----------
    signer_id : str
        Identity recorded in every signature block.
    """

    signer_id: str

    def sign(self, data: bytes, hash_algorithm: str) -> dict[str, Any]:
        hashlib_name = resolve_hash_algorithm(hash_algorithm)
        digest = hashlib.new(hashlib_name, data).hexdigest()
        return {
            "signer": self.signer_id,
            "hash_algorithm": hash_algorithm,
            "content_digest": format_digest(hashlib_name, digest),
        }


# ============================================================================
# Directory implementation
# ============================================================================


@dataclass
class _Piece:
    label: str | None
    references: list[str] = field(default_factory=list)


@dataclass
class _InformationObject:
    label: str | None
    depth: int
    metadata: list[tuple[str, str, str]] = field(default_factory=list)
    pieces: list[_Piece] = field(default_factory=list)


class DirectoryPackage:
    """Package staged in ``<output_dir>/<name>.veo``.

    Parameters
    ----------
    output_dir : Path
        Directory receiving the package.
    name : str
        Package name.
    hash_algorithm : str
        Algorithm name as written in the package (e.g. 'SHA-512').
    signer : Signer | None, optional
        Identity used when the package is finalized with signing.
    keep_dir : bool, optional
        Keep the staging directory after sealing, by default False.
    """

    def __init__(
        self,
        output_dir: Path,
        name: str,
        hash_algorithm: str,
        signer: Signer | None = None,
        keep_dir: bool = False,
    ) -> None:
        self.name = name
        self.hash_algorithm = hash_algorithm
        self.signer = signer
        self.keep_dir = keep_dir
        self.package_dir = output_dir / f"{name}.veo"
        self.zip_path = output_dir / f"{name}.veo.zip"
        self._hashlib_name = resolve_hash_algorithm(hash_algorithm)
        self._objects: list[_InformationObject] = []
        self._events: list[dict[str, Any]] = []
        self._sources: dict[str, Path] = {}
        self._closed = False

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def add_readme(self, source: Path) -> None:
        self._check_open()
        self._copy(source, self.package_dir / README_FILENAME)

    def add_event(
        self,
        timestamp: str,
        event: str,
        initiator: str,
        description: str,
        errors: tuple[str, ...] = (),
    ) -> None:
        self._check_open()
        self._events.append(
            {
                "timestamp": timestamp,
                "event": event,
                "initiator": initiator,
                "description": description,
                "errors": list(errors),
            }
        )

    def add_information_object(self, label: str | None, depth: int) -> None:
        self._check_open()
        previous = self._objects[-1].depth if self._objects else 0
        if depth < 1 or depth > previous + 1:
            raise PackageError(
                f"{self.name}: information object depth {depth} after depth {previous}"
            )
        self._objects.append(_InformationObject(label=label, depth=depth))

    def add_metadata_package(self, schema_uri: str, encoding_uri: str, content: str) -> None:
        self._current().metadata.append((schema_uri, encoding_uri, content))

    def add_information_piece(self, label: str | None = None) -> None:
        self._current().pieces.append(_Piece(label=label))

    def add_content_file(self, reference: str, source_path: Path) -> None:
        current = self._current()
        ref = PurePosixPath(reference)
        if ref.is_absolute() or ".." in ref.parts or not ref.parts:
            raise PackageError(f"{self.name}: invalid content reference '{reference}'")
        if not current.pieces:
            current.pieces.append(_Piece(label=None))

        # A reference already copied (e.g. the shared placeholder) is listed again.
        if reference not in self._sources:
            self._copy(source_path, self.package_dir.joinpath(*ref.parts))
            self._sources[reference] = source_path
        current.pieces[-1].references.append(reference)

    # ------------------------------------------------------------------
    # Sealing
    # ------------------------------------------------------------------

    def finalize(self, sign: bool) -> Path:
        """Write the control files, zip the package and remove the staging dir.

        Raises
        ------
        PackageFinalizeError
            If the package is empty, signing was requested without a signer,
            or any file cannot be written.
        """
        self._check_open()
        if not self._objects:
            raise PackageFinalizeError(f"{self.name}: no information objects")
        if sign and self.signer is None:
            raise PackageFinalizeError(f"{self.name}: signing requested but no signer configured")

        try:
            content = self._render_content().encode("utf-8")
            (self.package_dir / CONTENT_FILENAME).write_bytes(content)
            (self.package_dir / HISTORY_FILENAME).write_text(
                self._render_history(), encoding="utf-8"
            )
            if sign and self.signer is not None:
                signature = self.signer.sign(content, self.hash_algorithm)
                self._write_json(self.package_dir / SIGNATURE_FILENAME, signature)
            self._write_json(self.package_dir / MANIFEST_FILENAME, self._build_manifest())
            self._zip()
            if not self.keep_dir:
                shutil.rmtree(self.package_dir)
        except (OSError, ValueError) as e:
            raise PackageFinalizeError(f"{self.name}: failed to seal package: {e}") from e

        self._closed = True
        return self.zip_path

    def abandon(self) -> None:
        """Remove the staging directory and any partial zip."""
        self._closed = True
        shutil.rmtree(self.package_dir, ignore_errors=True)
        self.zip_path.with_suffix(".tmp").unlink(missing_ok=True)
        self.zip_path.unlink(missing_ok=True)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_open(self) -> None:
        if self._closed:
            raise PackageError(f"{self.name}: package already finalized or abandoned")

    def _current(self) -> _InformationObject:
        self._check_open()
        if not self._objects:
            raise PackageError(f"{self.name}: no information object started")
        return self._objects[-1]

    def _copy(self, source: Path, destination: Path) -> None:
        if not source.is_file():
            raise PackageError(f"{self.name}: '{source}' does not exist or is not a file")
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, destination)
        except OSError as e:
            raise PackageError(f"{self.name}: copying '{source}' failed: {e}") from e

    def _render_content(self) -> str:
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            f'<vers:VEOContent xmlns:vers="{VERS_NAMESPACE}">',
            " <vers:Version>3.0</vers:Version>",
            f" <vers:HashFunctionAlgorithm>{xml_encode(self.hash_algorithm)}</vers:HashFunctionAlgorithm>",
        ]
        for io in self._objects:
            lines.append(" <vers:InformationObject>")
            if io.label is not None:
                lines.append(
                    f"  <vers:InformationObjectType>{xml_encode(io.label)}</vers:InformationObjectType>"
                )
            lines.append(f"  <vers:InformationObjectDepth>{io.depth}</vers:InformationObjectDepth>")
            for schema_uri, encoding_uri, content in io.metadata:
                lines.append("  <vers:MetadataPackage>")
                lines.append(
                    f"   <vers:MetadataSchemaIdentifier>{xml_encode(schema_uri)}</vers:MetadataSchemaIdentifier>"
                )
                lines.append(
                    f"   <vers:MetadataSyntaxIdentifier>{xml_encode(encoding_uri)}</vers:MetadataSyntaxIdentifier>"
                )
                lines.append(content.rstrip("\n"))
                lines.append("  </vers:MetadataPackage>")
            for piece in io.pieces:
                lines.append("  <vers:InformationPiece>")
                if piece.label is not None:
                    lines.append(f"   <vers:Label>{xml_encode(piece.label)}</vers:Label>")
                for reference in piece.references:
                    lines.append("   <vers:ContentFile>")
                    lines.append(f"    <vers:PathName>{xml_encode(reference)}</vers:PathName>")
                    lines.append("   </vers:ContentFile>")
                lines.append("  </vers:InformationPiece>")
            lines.append(" </vers:InformationObject>")
        lines.append("</vers:VEOContent>")
        return "\n".join(lines) + "\n"

    def _render_history(self) -> str:
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            f'<vers:VEOHistory xmlns:vers="{VERS_NAMESPACE}">',
            " <vers:Version>3.0</vers:Version>",
        ]
        for event in self._events:
            lines.append(" <vers:Event>")
            lines.append(f"  <vers:EventDateTime>{xml_encode(event['timestamp'])}</vers:EventDateTime>")
            lines.append(f"  <vers:EventType>{xml_encode(event['event'])}</vers:EventType>")
            lines.append(f"  <vers:Initiator>{xml_encode(event['initiator'])}</vers:Initiator>")
            lines.append(f"  <vers:Description>{xml_encode(event['description'])}</vers:Description>")
            for error in event["errors"]:
                lines.append(f"  <vers:Error>{xml_encode(error)}</vers:Error>")
            lines.append(" </vers:Event>")
        lines.append("</vers:VEOHistory>")
        return "\n".join(lines) + "\n"

    def _build_manifest(self) -> dict[str, Any]:
        files = {}
        for path in sorted(p for p in self.package_dir.rglob("*") if p.is_file()):
            relative = path.relative_to(self.package_dir).as_posix()
            if relative == MANIFEST_FILENAME:
                continue
            files[relative] = calculate_file_digest(path, self.hash_algorithm)
        return {
            "package": self.name,
            "hash_algorithm": self.hash_algorithm,
            "information_objects": len(self._objects),
            "files": files,
        }

    def _write_json(self, path: Path, data: dict[str, Any]) -> None:
        with path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True, ensure_ascii=False)
            f.write("\n")

    def _zip(self) -> None:
        """Zip the staging directory: write to temp, fsync, rename."""
        temp_path = self.zip_path.with_suffix(".tmp")
        root = self.package_dir.parent
        with zipfile.ZipFile(temp_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for path in sorted(self.package_dir.rglob("*")):
                zf.write(path, path.relative_to(root).as_posix())
        with temp_path.open("rb") as f:
            os.fsync(f.fileno())
        temp_path.replace(self.zip_path)


class DirectoryPackageBuilder:
    """Opens DirectoryPackage handles.

    Parameters
    ----------
    signer : Signer | None, optional
        Identity handed to every package for signing.
    keep_dirs : bool, optional
        Keep staging directories after sealing, by default False.
    """

    def __init__(self, signer: Signer | None = None, keep_dirs: bool = False) -> None:
        self.signer = signer
        self.keep_dirs = keep_dirs

    def open(self, output_dir: Path, name: str, hash_algorithm: str) -> DirectoryPackage:
        try:
            package = DirectoryPackage(
                output_dir, name, hash_algorithm, signer=self.signer, keep_dir=self.keep_dirs
            )
        except ValueError as e:
            raise PackageCreateError(f"{name}: {e}") from e

        try:
            if package.package_dir.exists():
                shutil.rmtree(package.package_dir)
            package.zip_path.unlink(missing_ok=True)
        except OSError as e:
            raise PackageCreateError(
                f"'{package.package_dir}' already exists and could not be deleted: {e}"
            ) from e

        try:
            package.package_dir.mkdir(parents=True)
        except OSError as e:
            raise PackageCreateError(
                f"Could not create package directory '{package.package_dir}': {e}"
            ) from e

        return package
