"""Package emission.

- PackageEmitter: one package per root, records nested by depth
- DirectoryPackageBuilder: writes ``<name>.veo`` and seals ``<name>.veo.zip``
- FormatAllowList: approved content file extensions
- load_agls_common: common AGLS template fragment
"""

from trimveo.emit.builder import (
    DigestSigner,
    DirectoryPackage,
    DirectoryPackageBuilder,
    PackageBuilder,
    PackageHandle,
    Signer,
)
from trimveo.emit.emitter import EmissionResult, PackageEmitter, RootResult
from trimveo.emit.formats import FormatAllowList
from trimveo.emit.templates import load_agls_common

__all__ = [
    "DigestSigner",
    "DirectoryPackage",
    "DirectoryPackageBuilder",
    "EmissionResult",
    "FormatAllowList",
    "PackageBuilder",
    "PackageEmitter",
    "PackageHandle",
    "RootResult",
    "Signer",
    "load_agls_common",
]
