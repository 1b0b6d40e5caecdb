"""
errors.py
---------
Exception types raised during a conversion run.

ConfigError and ParseError abort before/while reading inputs,
OutputWriteError aborts while writing the output tree.
Missing image files are NOT errors (they are counted and reported).
"""


class ConversionError(Exception):
    """Base class for every fatal conversion failure."""


class ConfigError(ConversionError, ValueError):
    """Unknown format, missing input root, malformed pipeline config."""


class ParseError(ConversionError, ValueError):
    """Annotation document does not match the expected schema."""

    def __init__(self, message: str, source: str = None):
        self.source = source
        if source:
            message = f"{source}: {message}"
        super().__init__(message)


class OutputWriteError(ConversionError, OSError):
    """A directory or file under the output root could not be written."""

    def __init__(self, action: str, path):
        self.path = str(path)
        super().__init__(f"Failed to {action}: {self.path}")
