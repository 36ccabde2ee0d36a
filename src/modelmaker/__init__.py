"""modelmaker - Interactive generator for Eloquent models and guarded schema migrations."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("modelmaker")
except PackageNotFoundError:
    __version__ = "unknown"

__all__ = ["__version__"]
