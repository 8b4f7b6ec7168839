"""Single-pass lint driver.

Parses one file, hands a fresh rule context to a fresh rule instance, then
walks the syntax tree once in source order, dispatching each node to the
rule callback registered for its type.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from tree_sitter import Node

from .diagnostics import Diagnostic, Severity
from .errors import UnsupportedFileError
from .export_extractor import parse_issue
from .export_map import ExportMap, ExportMapRegistry
from .namespace_rule import NamespaceRule
from .parser import LanguageParser, read_source
from .scope import ScopeAnalyzer
from .syntax import first_error_node, same_node

logger = logging.getLogger(__name__)

JSX_OPENING_TAGS = ('jsx_opening_element', 'jsx_self_closing_element')

EXCLUDED_DIRS = {
    'node_modules', '.git', 'dist', 'build', 'coverage',
    '.next', '.nsguard_cache', '__pycache__',
}


@dataclass
class RuleOptions:
    """Options accepted by the namespace rule."""
    allow_computed: bool = False

    @classmethod
    def from_config(cls, config, **overrides) -> 'RuleOptions':
        options = cls(allow_computed=config.allow_computed)
        for key, value in overrides.items():
            if value is not None:
                setattr(options, key, value)
        return options


class RuleContext:
    """What a rule may see and do while checking one file."""

    def __init__(self, file_path: Path, options: RuleOptions,
                 registry: Optional[ExportMapRegistry], rule_name: str = NamespaceRule.name):
        self.file_path = Path(file_path)
        self.options = options
        self.registry = registry
        self.rule_name = rule_name
        self.scope = ScopeAnalyzer()
        self.diagnostics: List[Diagnostic] = []

    def report(self, node: Node, message: str, severity: str = Severity.ERROR):
        start_row, start_column = node.start_point
        end_row, end_column = node.end_point
        self.diagnostics.append(Diagnostic(
            file_path=str(self.file_path),
            line=start_row + 1,
            column=start_column + 1,
            end_line=end_row + 1,
            end_column=end_column + 1,
            message=message,
            severity=severity,
            rule=self.rule_name,
        ))

    def get_export_map(self, specifier: Optional[str]) -> Optional[ExportMap]:
        if specifier is None or self.registry is None:
            return None
        return self.registry.get(specifier, self.file_path)

    def declared_scope(self, node: Node, name: str) -> str:
        return self.scope.declared_scope(node, name)


@dataclass
class LintResult:
    file_path: str
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self.diagnostics if not d.is_error)


class Linter:
    def __init__(self, options: Optional[RuleOptions] = None, registry: Optional[ExportMapRegistry] = None):
        self.options = options or RuleOptions()
        self.registry = registry
        self._parsers: Dict[str, LanguageParser] = {}

    def lint_file(self, file_path: Path) -> LintResult:
        """Check one file on disk.

        Raises:
            UnsupportedFileError: No grammar for the file's extension
            SourceReadError: The file cannot be read
        """
        file_path = Path(file_path).resolve()
        language = LanguageParser.language_for(file_path)
        if language is None:
            raise UnsupportedFileError(f"No grammar for '{file_path.suffix}' files: {file_path}")
        return self.lint_source(read_source(file_path), file_path, language)

    def lint_source(self, source: bytes | str, file_path: Path, language: Optional[str] = None) -> LintResult:
        language = language or LanguageParser.language_for(file_path) or 'javascript'
        tree = self._parser(language).parse_source(source)
        context = RuleContext(file_path, self.options, self.registry)
        result = LintResult(file_path=str(file_path))

        error_node = first_error_node(tree.root_node)
        if error_node is not None:
            # Rules never run on a broken tree
            context.rule_name = None
            context.report(error_node, f"Parsing error: {parse_issue(error_node)}")
            result.diagnostics = context.diagnostics
            return result

        rule = NamespaceRule(context)
        self._traverse(tree.root_node, rule.handlers())
        result.diagnostics = sorted(context.diagnostics, key=Diagnostic.sort_key)
        logger.debug("%s: %d problem(s)", file_path, len(result.diagnostics))
        return result

    def _parser(self, language: str) -> LanguageParser:
        parser = self._parsers.get(language)
        if parser is None:
            parser = self._parsers[language] = LanguageParser(language)
        return parser

    def _traverse(self, root: Node, handlers: Dict[str, Callable[[Node], None]]):
        stack = [root]
        while stack:
            node = stack.pop()
            handler = handlers.get(dispatch_type(node))
            if handler is not None:
                handler(node)
            # reversed so nodes are visited in source order
            stack.extend(reversed(node.named_children))


def dispatch_type(node: Node) -> Optional[str]:
    """Callback key for a node.

    JSX tag names parse as member expressions; opening-tag names are routed
    to the JSX accessor callback and closing-tag names to nothing, so one
    element is checked once.
    """
    if node.type != 'member_expression':
        return node.type

    child, parent = node, node.parent
    while parent is not None and parent.type == 'member_expression' \
            and same_node(parent.child_by_field_name('object'), child):
        child, parent = parent, parent.parent

    if parent is not None and same_node(parent.child_by_field_name('name'), child):
        if parent.type in JSX_OPENING_TAGS:
            return 'jsx_member_expression'
        if parent.type == 'jsx_closing_element':
            return None
    return node.type


def collect_files(paths: Iterable[Path], extensions: Optional[Iterable[str]] = None,
                  exclude: Iterable[str] = ()) -> List[Path]:
    """Expand files and directories into the list of source files to check.

    Args:
        paths: Files (taken as given) and directories (searched recursively)
        extensions: Suffixes to keep when searching; defaults to every supported grammar
        exclude: Extra directory names to skip
    """
    if extensions is None:
        extensions = LanguageParser.SUPPORTED_LANGUAGES
    suffixes = {ext.lower() for ext in extensions}
    excluded = EXCLUDED_DIRS | set(exclude)
    files = []
    for path in paths:
        path = Path(path)
        if path.is_file():
            files.append(path.resolve())
            continue
        for candidate in sorted(path.rglob('*')):
            if not candidate.is_file() or candidate.suffix.lower() not in suffixes:
                continue
            if any(part in excluded for part in candidate.relative_to(path).parts):
                continue
            files.append(candidate.resolve())
    return files
