"""Conversion orchestration engine.

This package provides the main entry point for running a complete
conversion, including configuration and result types.
"""

from trimveo.engine.config import ConversionConfig, ConversionResult
from trimveo.engine.runner import load_resources, run_conversion

__all__ = [
    "ConversionConfig",
    "ConversionResult",
    "load_resources",
    "run_conversion",
]
