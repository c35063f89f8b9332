"""Application version metadata."""

__app_name__ = "Tiling Suite"
__version__ = "1.0.0"
__company__ = "Tiling Suite"
