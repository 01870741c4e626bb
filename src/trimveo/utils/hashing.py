"""Hashing utilities for trimveo.

Package content is protected with a configurable algorithm named the way
archivists write it (``SHA-512``, ``SHA-256``, ...); audit artifacts always
use SHA-256.
"""

import hashlib
from pathlib import Path

__all__ = [
    "resolve_hash_algorithm",
    "format_digest",
    "calculate_file_digest",
    "calculate_file_sha256",
]


def resolve_hash_algorithm(name: str) -> str:
    """Map an algorithm name such as 'SHA-512' to its hashlib name.

    Parameters
    ----------
    name : str
        Algorithm name, with or without a dash, any case.

    Returns
    -------
    str
        hashlib algorithm name (e.g., 'sha512').

    Raises
    ------
    ValueError
        If hashlib does not provide the algorithm.
    """
    hashlib_name = name.replace("-", "").lower()
    if hashlib_name not in hashlib.algorithms_available:
        raise ValueError(f"Unsupported hash algorithm: {name!r}")
    return hashlib_name


def format_digest(algorithm: str, hex_digest: str) -> str:
    """Format a digest with its algorithm prefix (e.g., "sha512:<hex>")."""
    return f"{algorithm}:{hex_digest}"


def calculate_file_digest(path: Path, algorithm: str = "SHA-256") -> str:
    """Calculate the digest of file contents.

    Parameters
    ----------
    path : Path
        Path to file.
    algorithm : str, optional
        Algorithm name, by default "SHA-256".

    Returns
    -------
    str
        Digest with hashlib-name prefix.

    Raises
    ------
    FileNotFoundError
        If file does not exist.
    """
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    hashlib_name = resolve_hash_algorithm(algorithm)
    hasher = hashlib.new(hashlib_name)
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            hasher.update(chunk)

    return format_digest(hashlib_name, hasher.hexdigest())


def calculate_file_sha256(path: Path) -> str:
    """Calculate SHA256 hash of file contents ("sha256:<hex>")."""
    return calculate_file_digest(path, "SHA-256")
