"""Exceptions raised while preparing files for analysis.

Rule-level problems are never raised; they become diagnostics.
"""


class NsguardError(Exception):
    """Base class for all nsguard failures."""


class UnsupportedFileError(NsguardError):
    """No tree-sitter grammar is registered for the file."""


class SourceReadError(NsguardError):
    """The source file exists but could not be read."""
