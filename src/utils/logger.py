"""Terminal-safe output and logging setup.

Detects terminal encoding and provides ASCII alternatives for the Unicode
icons used in reports, and installs a rich logging handler for the CLI.
"""
import logging
import sys
import locale

from rich.logging import RichHandler


# Unicode to ASCII icon mapping for terminals without UTF-8
ICON_MAP = {
    '✓': '[OK]',
    '✗': '[FAIL]',
    '⚠': '[WARN]',
    '→': '->',
    '•': '*',
    '…': '...',
}


def detect_terminal_encoding() -> str:
    """Detect the terminal's encoding capability.

    Returns:
        str: Terminal encoding ('utf-8', 'cp1252', 'ascii', etc.)
    """
    if hasattr(sys.stdout, 'encoding') and sys.stdout.encoding:
        return sys.stdout.encoding.lower()

    try:
        return locale.getpreferredencoding().lower()
    except (AttributeError, ValueError):
        return 'ascii'


def is_utf8_capable() -> bool:
    """Check if the terminal can handle UTF-8 Unicode characters."""
    return detect_terminal_encoding() in ('utf-8', 'utf8', 'utf_8')


def sanitize_for_terminal(text: str, force: bool = False) -> str:
    """Replace Unicode icons with ASCII equivalents if terminal doesn't support UTF-8.

    Args:
        text: Text potentially containing Unicode icons
        force: Sanitize even on a UTF-8 terminal

    Returns:
        str: Sanitized text safe for current terminal
    """
    if not force and is_utf8_capable():
        return text

    sanitized = text
    for unicode_char, ascii_replacement in ICON_MAP.items():
        sanitized = sanitized.replace(unicode_char, ascii_replacement)
    return sanitized


def configure_logging(verbose: bool = False) -> None:
    """Route the package loggers through rich.

    Args:
        verbose: DEBUG when True, WARNING otherwise
    """
    handler = RichHandler(show_path=False, markup=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    root = logging.getLogger("src")
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root.propagate = False
