"""assetprep: web-safe asset renaming with undo, plus media transcoding."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("assetprep")
except PackageNotFoundError:  # source checkout without an installed distribution
    __version__ = "0.0.0"

__all__ = ["__version__"]
