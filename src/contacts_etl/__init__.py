"""Write buffering and flush control for the contacts batch pipeline."""
from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("contacts-etl")
except PackageNotFoundError:  # pragma: no cover - during local dev without install
    __version__ = "0.0.0"

__all__ = ["__version__"]
