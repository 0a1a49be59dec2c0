"""Cut planning for fixed-length extrusions."""

__version__ = "0.1.0"
