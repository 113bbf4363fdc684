"""Core package for the Nexgen Canvas authoring helpers."""

from importlib import metadata


def get_version() -> str:
    """Return the installed project version."""
    try:
        return metadata.version("nexgen-canvas")
    except metadata.PackageNotFoundError:
        return "0.0.0"


__all__ = ["get_version"]
