"""Backend implementations."""

from pixelfs.backends._pixeldrain import PixeldrainBackend

__all__ = ["PixeldrainBackend"]
