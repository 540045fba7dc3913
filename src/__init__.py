"""imgcache — local content-addressable cache for remotely hosted images."""

from imgcache.version import __version__

__all__ = ["__version__"]
