"""Export surface extraction for ES modules.

Reads the top-level statements of a parsed module and records what it
exports, without resolving any other module. The result (`ExportFacts`) is
plain data so it can be cached between runs; `ExportMap` turns it into a
queryable, lazily linked structure.
"""
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Tuple

from tree_sitter import Node, Tree

from .syntax import (
    declared_names,
    first_error_node,
    has_child_token,
    module_export_name,
    node_text,
    string_value,
)


@dataclass
class ParseIssue:
    message: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.message} ({self.line}:{self.column})"


@dataclass
class ExportFacts:
    """What a single module exports.

    Attributes:
        locals: Names bound to values declared in the module itself
        namespaces: Exported name -> specifier of a module re-exported as a whole
        reexports: Exported name -> (specifier, name imported from it)
        stars: Specifiers of `export * from` declarations
        errors: Parse problems found in the module
    """
    locals: List[str] = field(default_factory=list)
    namespaces: Dict[str, str] = field(default_factory=dict)
    reexports: Dict[str, Tuple[str, str]] = field(default_factory=dict)
    stars: List[str] = field(default_factory=list)
    errors: List[ParseIssue] = field(default_factory=list)

    def add_local(self, name: str):
        if name not in self.locals:
            self.locals.append(name)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'ExportFacts':
        return cls(
            locals=list(data.get('locals', [])),
            namespaces=dict(data.get('namespaces', {})),
            reexports={name: (spec, imported) for name, (spec, imported) in data.get('reexports', {}).items()},
            stars=list(data.get('stars', [])),
            errors=[ParseIssue(**issue) for issue in data.get('errors', [])],
        )


def extract_export_facts(tree: Tree) -> ExportFacts:
    """Collect the export facts of a parsed module."""
    root = tree.root_node
    facts = ExportFacts()

    error_node = first_error_node(root)
    if error_node is not None:
        facts.errors.append(parse_issue(error_node))

    # Imports are hoisted: `export { ns }` may precede `import * as ns`
    imported = {}
    for statement in root.named_children:
        if statement.type == 'import_statement':
            imported.update(_import_bindings(statement))

    for statement in root.named_children:
        if statement.type == 'export_statement':
            _collect_export(statement, imported, facts)

    return facts


def parse_issue(node: Node) -> ParseIssue:
    row, column = node.start_point
    if node.is_missing:
        message = f"Missing '{node.type}'"
    else:
        message = "Unexpected token"
        if node.child_count:
            message = f"Unexpected token '{node_text(node.children[0])[:20]}'"
    return ParseIssue(message=message, line=row + 1, column=column + 1)


def _import_bindings(statement: Node) -> Dict[str, Tuple[str, str]]:
    """Map local names to (specifier, imported name); '*' marks a namespace import."""
    specifier = string_value(statement.child_by_field_name('source'))
    bindings = {}
    if specifier is None:
        return bindings

    for clause in statement.named_children:
        if clause.type != 'import_clause':
            continue
        for child in clause.named_children:
            if child.type == 'identifier':
                bindings[node_text(child)] = (specifier, 'default')
            elif child.type == 'namespace_import':
                for ns_child in child.named_children:
                    if ns_child.type == 'identifier':
                        bindings[node_text(ns_child)] = (specifier, '*')
            elif child.type == 'named_imports':
                for import_specifier in child.named_children:
                    if import_specifier.type != 'import_specifier':
                        continue
                    name_node = import_specifier.child_by_field_name('name')
                    alias_node = import_specifier.child_by_field_name('alias')
                    original = module_export_name(name_node)
                    local = node_text(alias_node) if alias_node else original
                    bindings[local] = (specifier, original)
    return bindings


def _collect_export(statement: Node, imported: Dict[str, Tuple[str, str]], facts: ExportFacts):
    specifier = string_value(statement.child_by_field_name('source'))

    if has_child_token(statement, 'default'):
        value = statement.child_by_field_name('value')
        if value is not None and value.type == 'identifier':
            binding = imported.get(node_text(value))
            if binding and binding[1] == '*':
                facts.namespaces['default'] = binding[0]
                return
        facts.add_local('default')
        return

    declaration = statement.child_by_field_name('declaration')
    if declaration is not None:
        for name in declared_names(declaration):
            facts.add_local(name)
        return

    for child in statement.named_children:
        if child.type == 'namespace_export':
            # export * as name from 'spec'
            name_node = child.named_children[-1]
            if specifier is not None:
                facts.namespaces[module_export_name(name_node)] = specifier
            return

        if child.type == 'export_clause':
            for export_specifier in child.named_children:
                if export_specifier.type == 'export_specifier':
                    _collect_specifier(export_specifier, specifier, imported, facts)
            return

    if specifier is not None and has_child_token(statement, '*'):
        facts.stars.append(specifier)


def _collect_specifier(export_specifier: Node, specifier: Optional[str],
                       imported: Dict[str, Tuple[str, str]], facts: ExportFacts):
    local = module_export_name(export_specifier.child_by_field_name('name'))
    alias_node = export_specifier.child_by_field_name('alias')
    exported = module_export_name(alias_node) if alias_node else local

    if specifier is not None:
        facts.reexports[exported] = (specifier, local)
    elif local in imported:
        source, imported_name = imported[local]
        if imported_name == '*':
            facts.namespaces[exported] = source
        else:
            facts.reexports[exported] = (source, imported_name)
    else:
        facts.add_local(exported)
