"""Pull-style JSON reading of values one at a time from bytes, strings or binary streams."""

__version__ = "0.1.0"
__all__ = ["iterator", "number", "numbers", "reader"]