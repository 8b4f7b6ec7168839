"""Queryable export surfaces of ES modules.

An ExportMap answers "does module M export name N, and is N itself a
namespace?". Nested namespaces are linked lazily through the registry, so a
module that (indirectly) re-exports itself never expands unboundedly.
"""
import logging
from fnmatch import fnmatch
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional, Set

from .cache import ExportCache
from .errors import SourceReadError
from .export_extractor import ExportFacts, ParseIssue, extract_export_facts
from .parser import LanguageParser, read_source
from .resolver import ModuleResolver
from .syntax import string_value

if TYPE_CHECKING:
    from tree_sitter import Node

    from .linter import RuleContext

logger = logging.getLogger(__name__)


class ExportDescriptor:
    """Metadata for one exported name.

    `namespace` is the ExportMap of the module behind the name when the name
    is a re-exported namespace, otherwise None.
    """

    def __init__(self, name: str, resolve_namespace: Optional[Callable[[], Optional['ExportMap']]] = None):
        self.name = name
        self._resolve_namespace = resolve_namespace

    @property
    def namespace(self) -> Optional['ExportMap']:
        if self._resolve_namespace is None:
            return None
        return self._resolve_namespace()

    def __repr__(self):
        kind = 'namespace' if self._resolve_namespace else 'value'
        return f"ExportDescriptor({self.name!r}, {kind})"


class ExportMap:
    def __init__(self, path: Path, facts: ExportFacts, registry: 'ExportMapRegistry'):
        self.path = Path(path)
        self.facts = facts
        self.registry = registry

    def __repr__(self):
        return f"ExportMap({self.path})"

    @property
    def errors(self) -> List[ParseIssue]:
        return self.facts.errors

    @property
    def size(self) -> int:
        """Number of exported names, including those from `export *` modules.

        An unresolvable `export *` counts as one name, matching `has`.
        """
        return self._size(set())

    def _size(self, visited: Set[Path]) -> int:
        if self.path in visited:
            return 0
        visited.add(self.path)
        size = len(self._own_names())
        for dependency in self._dependencies():
            if dependency is None:
                size += 1
            else:
                size += dependency._size(visited)
        return size

    def _own_names(self) -> Set[str]:
        return set(self.facts.locals) | set(self.facts.namespaces) | set(self.facts.reexports)

    def _dependency(self, specifier: str) -> Optional['ExportMap']:
        return self.registry.get(specifier, self.path)

    def _dependencies(self) -> Iterable[Optional['ExportMap']]:
        for specifier in self.facts.stars:
            yield self._dependency(specifier)

    def has(self, name: str, _visited: Optional[Set[Path]] = None) -> bool:
        """True if `name` is (or cannot be ruled out as) an export of this module.

        An `export *` from a module that cannot be resolved might provide
        any name, so it makes every non-default name count as present.
        """
        if name in self._own_names():
            return True
        if name == 'default':
            # `export *` never forwards the default export
            return False

        visited = _visited if _visited is not None else set()
        visited.add(self.path)
        for dependency in self._dependencies():
            if dependency is None:
                return True
            if dependency.path in visited:
                continue
            if dependency.has(name, visited):
                return True
        return False

    def get(self, name: str, _visited: Optional[Set[Path]] = None) -> Optional[ExportDescriptor]:
        """Look up an exported name.

        Returns None both for absent names and for names that exist but whose
        origin is unresolvable, ignored or circular; callers distinguish the
        two with `has`.
        """
        visited = _visited if _visited is not None else set()

        if name in self.facts.namespaces:
            specifier = self.facts.namespaces[name]
            return ExportDescriptor(name, lambda: self._dependency(specifier))

        if name in self.facts.locals:
            return ExportDescriptor(name)

        if name in self.facts.reexports:
            specifier, imported = self.facts.reexports[name]
            target = self._dependency(specifier)
            if target is None:
                return None
            if target.path == self.path and imported == name:
                return None
            if target.path in visited:
                return None
            return target.get(imported, visited | {self.path})

        if name != 'default':
            visited = visited | {self.path}
            for dependency in self._dependencies():
                if dependency is None:
                    return None
                if dependency.path in visited:
                    continue
                found = dependency.get(name, visited)
                if found is not None:
                    return found

        return None

    def report_errors(self, context: 'RuleContext', declaration: 'Node'):
        """Report this module's parse errors at the importing declaration's source."""
        source = declaration.child_by_field_name('source')
        if source is None:
            source = declaration
        details = ', '.join(str(issue) for issue in self.errors)
        context.report(
            source,
            f"Parse errors in imported module '{string_value(source)}': {details}",
        )


class ExportMapRegistry:
    """Builds and memoizes one ExportMap per resolved module path for a run."""

    def __init__(self, resolver: ModuleResolver, cache: Optional[ExportCache] = None,
                 ignore: Iterable[str] = ('node_modules',)):
        self.resolver = resolver
        self.cache = cache
        self.ignore = list(ignore)
        self._maps: Dict[Path, ExportMap] = {}
        self._parsers: Dict[str, LanguageParser] = {}

    def get(self, specifier: str, importing_file: Path) -> Optional[ExportMap]:
        """Resolve `specifier` as imported from `importing_file`.

        Returns None when the module cannot be resolved or is ignored.
        """
        path = self.resolver.resolve(Path(importing_file), specifier)
        if path is None or self.is_ignored(path):
            return None
        return self.for_path(path)

    def is_ignored(self, path: Path) -> bool:
        if LanguageParser.language_for(path) is None:
            # .json, .css and other non-parseable targets
            return True
        posix = Path(path).as_posix()
        return any(pattern in Path(path).parts or fnmatch(posix, pattern) for pattern in self.ignore)

    def for_path(self, path: Path) -> ExportMap:
        path = Path(path).resolve()
        export_map = self._maps.get(path)
        if export_map is None:
            # Registered before any dependency is touched; dependencies resolve lazily
            export_map = ExportMap(path, self._load_facts(path), self)
            self._maps[path] = export_map
        return export_map

    def _load_facts(self, path: Path) -> ExportFacts:
        if self.cache is not None:
            cached = self.cache.get_export_facts(path)
            if cached is not None:
                logger.debug("Export cache hit: %s", path)
                return cached

        try:
            source = read_source(path)
        except SourceReadError as e:
            logger.debug("%s", e)
            return ExportFacts(errors=[ParseIssue(message=str(e), line=1, column=1)])

        language = LanguageParser.language_for(path)
        parser = self._parsers.get(language)
        if parser is None:
            parser = self._parsers[language] = LanguageParser(language)

        facts = extract_export_facts(parser.parse_source(source))
        if self.cache is not None:
            self.cache.set_export_facts(path, facts)
        return facts
