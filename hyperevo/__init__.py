"""hyperevo: batch entity scoring and knowledge propagation engine."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("hyperevo")
except PackageNotFoundError:
    __version__ = "0.1.0"  # fallback for development
