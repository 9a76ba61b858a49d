"""Resilient browser driver for the admin event workflow."""

from importlib import metadata

try:
    __version__ = metadata.version("admin-event-e2e")
except metadata.PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

__all__ = ["__version__"]
