"""Errors raised by tag readers."""


class ExifReadError(Exception):
    """A file's metadata could not be read."""
