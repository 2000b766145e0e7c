"""Win32 backup streams, extended attributes, file times, and tar header, PAX and sparse-map helpers."""

__version__ = "0.1.0"