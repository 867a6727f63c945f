"""jmlboot — OpenJML toolchain bootstrap."""

__version__ = "0.1.0"
