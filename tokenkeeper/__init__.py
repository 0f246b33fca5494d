"""Token Keeper: counter plus token registries backed by JSON documents."""
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("tokenkeeper")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
