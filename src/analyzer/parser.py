"""Tree-sitter parser for JavaScript/TypeScript module analysis."""
from pathlib import Path
from typing import Optional
from tree_sitter import Language, Parser, Tree
import tree_sitter_javascript as tsjavascript
import tree_sitter_typescript as tstypescript

from .errors import SourceReadError, UnsupportedFileError


class LanguageParser:
    """Multi-grammar parser using tree-sitter v0.22+ API."""

    SUPPORTED_LANGUAGES = {
        '.js': 'javascript',
        '.mjs': 'javascript',
        '.cjs': 'javascript',
        '.jsx': 'javascript',
        '.ts': 'typescript',
        '.mts': 'typescript',
        '.cts': 'typescript',
        '.tsx': 'tsx',
    }

    def __init__(self, language: str):
        """Initialize parser for given language (javascript, typescript, tsx).

        Args:
            language: One of 'javascript', 'typescript', 'tsx'

        Raises:
            UnsupportedFileError: If language is not supported
        """
        self.language = language
        self.parser = self._create_parser()

    def _create_parser(self) -> Parser:
        """Factory method using tree-sitter v0.25+ API.

        Returns:
            Configured Parser instance

        Raises:
            UnsupportedFileError: If language is not supported
        """
        if self.language == 'javascript':
            # The javascript grammar parses JSX as well
            lang = Language(tsjavascript.language())
        elif self.language == 'typescript':
            lang = Language(tstypescript.language_typescript())
        elif self.language == 'tsx':
            lang = Language(tstypescript.language_tsx())
        else:
            raise UnsupportedFileError(f"Unsupported language: {self.language}")

        return Parser(lang)

    def parse_source(self, source_code: bytes | str) -> Tree:
        """Parse in-memory source code.

        Args:
            source_code: Source text (str is encoded as UTF-8)

        Returns:
            Parsed Tree object
        """
        if isinstance(source_code, str):
            source_code = source_code.encode('utf-8')
        return self.parser.parse(source_code)

    @classmethod
    def language_for(cls, file_path: str | Path) -> Optional[str]:
        """Map a file path to a grammar name, or None."""
        return cls.SUPPORTED_LANGUAGES.get(Path(file_path).suffix.lower())


def read_source(file_path: Path) -> bytes:
    """Read raw source bytes.

    Raises:
        SourceReadError: On any OS-level read failure
    """
    try:
        with open(file_path, 'rb') as f:
            return f.read()
    except OSError as e:
        raise SourceReadError(f"Cannot read {file_path}: {e.strerror or e}") from e
