"""Kalkoto – household policy microsimulation: baseline, variant and diff."""

from importlib import metadata

try:  # pragma: no cover - fallback when package not installed
    __version__ = metadata.version("kalkoto")
except metadata.PackageNotFoundError:  # type: ignore[attr-defined]
    __version__ = "0.0.0"

__all__ = ["__version__"]
