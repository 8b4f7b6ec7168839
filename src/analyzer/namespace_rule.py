"""Rule: imported namespaces must contain the names dereferenced from them.

Given

    import * as api from './api';

every `api.x`, `api.x.y` (when `x` is itself a re-exported namespace),
`const { x } = api` and `<api.X />` must name an export that exists. Writing
to `api.x` is always reported, and `api[expr]` is reported as unverifiable
unless `allow_computed` is set.
"""
from typing import TYPE_CHECKING, Callable, Dict, Iterator, List, Optional, Tuple

from tree_sitter import Node

from .diagnostics import Severity
from .export_map import ExportMap
from .syntax import module_export_name, node_text, same_node, string_value

if TYPE_CHECKING:
    from .linter import RuleContext

ASSIGNMENTS = ('assignment_expression', 'augmented_assignment_expression')
MEMBER_ACCESS = ('member_expression', 'subscript_expression')
IDENTIFIER_KEYS = ('property_identifier', 'shorthand_property_identifier_pattern', 'identifier')


def make_message(last: str, namepath: List[str]) -> str:
    deeply = 'deeply ' if len(namepath) > 1 else ''
    return f"'{last}' not found in {deeply}imported namespace '{'.'.join(namepath)}'."


class NamespaceRule:
    name = 'namespace'
    description = 'Ensure imported namespaces contain dereferenced properties as they are dereferenced.'

    def __init__(self, context: 'RuleContext'):
        self.context = context
        self.allow_computed = context.options.allow_computed
        # Binding table: local name -> ExportMap, filled once by program()
        self.namespaces: Dict[str, ExportMap] = {}

    def handlers(self) -> Dict[str, Callable[[Node], None]]:
        return {
            'program': self.program,
            'namespace_export': self.namespace_export,
            'member_expression': self.member_expression,
            'subscript_expression': self.member_expression,
            'variable_declarator': self.variable_declarator,
            'jsx_member_expression': self.jsx_member_expression,
        }

    # pick up all imports at body entry time, to respect hoisting
    def program(self, node: Node):
        for statement in node.named_children:
            self._process_body_statement(statement)

    def _process_body_statement(self, declaration: Node):
        if declaration.type != 'import_statement':
            return

        specifiers = list(_import_specifiers(declaration))
        if not specifiers:
            return

        source = string_value(declaration.child_by_field_name('source'))
        imports = self.context.get_export_map(source)
        if imports is None:
            return

        if imports.errors:
            imports.report_errors(self.context, declaration)
            return

        for specifier, local, imported in specifiers:
            if imported is None:
                if not imports.size:
                    self.context.report(
                        specifier,
                        f"No exported names found in module '{source}'.",
                        severity=Severity.WARNING,
                    )
                self.namespaces[local] = imports
                continue

            meta = imports.get(imported)
            if meta is None:
                continue
            namespace = meta.namespace
            if namespace is not None:
                self.namespaces[local] = namespace

    # same as above, but does not add names to the binding table
    def namespace_export(self, node: Node):
        declaration = node.parent
        source = string_value(declaration.child_by_field_name('source'))
        if source is None:
            return

        imports = self.context.get_export_map(source)
        if imports is None:
            return

        if imports.errors:
            imports.report_errors(self.context, declaration)
            return

        if not imports.size:
            self.context.report(
                node,
                f"No exported names found in module '{source}'.",
                severity=Severity.WARNING,
            )

    def member_expression(self, dereference: Node):
        obj = dereference.child_by_field_name('object')
        if obj is None or obj.type != 'identifier':
            return
        name = node_text(obj)
        if name not in self.namespaces:
            return
        if self.context.declared_scope(obj, name) != 'module':
            return

        target, parent = dereference, dereference.parent
        while parent is not None and parent.type == 'parenthesized_expression':
            target, parent = parent, parent.parent
        if parent is not None and parent.type in ASSIGNMENTS \
                and same_node(parent.child_by_field_name('left'), target):
            self.context.report(parent, f"Assignment to member of namespace '{name}'.")

        # go deep
        namespace = self.namespaces[name]
        namepath = [name]
        while isinstance(namespace, ExportMap) and dereference.type in MEMBER_ACCESS:
            if dereference.type == 'subscript_expression':
                if not self.allow_computed:
                    self.context.report(
                        dereference.child_by_field_name('index'),
                        f"Unable to validate computed reference to imported namespace '{'.'.join(namepath)}'.",
                    )
                return

            prop = dereference.child_by_field_name('property')
            prop_name = node_text(prop)
            if not namespace.has(prop_name):
                self.context.report(prop, make_message(prop_name, namepath))
                break

            exported = namespace.get(prop_name)
            # present, but ignored or ambiguous
            if exported is None:
                return

            namepath.append(prop_name)
            namespace = exported.namespace

            parent = dereference.parent
            if parent is None or not same_node(parent.child_by_field_name('object'), dereference):
                break
            dereference = parent

    def variable_declarator(self, declarator: Node):
        init = declarator.child_by_field_name('value')
        if init is None or init.type != 'identifier':
            return
        name = node_text(init)
        if name not in self.namespaces:
            return

        # check for redefinition in intermediate scopes
        if self.context.declared_scope(init, name) != 'module':
            return

        self._test_key(declarator.child_by_field_name('name'), self.namespaces[name], [name])

    def _test_key(self, pattern: Optional[Node], namespace, path: List[str]):
        """Depth-first check of an object pattern against a namespace."""
        if not isinstance(namespace, ExportMap):
            return
        if pattern is None or pattern.type != 'object_pattern':
            return

        for prop in pattern.named_children:
            if prop.type in ('rest_pattern', 'comment'):
                continue

            key, value = _destructured_property(prop)
            if key is None or key.type not in IDENTIFIER_KEYS:
                self.context.report(prop, 'Only destructure top-level names.')
                continue

            key_name = node_text(key)
            if not namespace.has(key_name):
                self.context.report(prop, make_message(key_name, path))
                continue

            path.append(key_name)
            exported = namespace.get(key_name)
            if exported is not None:
                self._test_key(value, exported.namespace, path)
            path.pop()

    def jsx_member_expression(self, node: Node):
        obj = node.child_by_field_name('object')
        prop = node.child_by_field_name('property')
        if obj is None or prop is None or obj.type != 'identifier':
            return
        name = node_text(obj)
        namespace = self.namespaces.get(name)
        if namespace is None:
            return
        prop_name = node_text(prop)
        if not namespace.has(prop_name):
            self.context.report(prop, make_message(prop_name, [name]))


def _import_specifiers(declaration: Node) -> Iterator[Tuple[Node, str, Optional[str]]]:
    """Yield (node, local name, imported name); imported is None for `* as ns`."""
    for clause in declaration.named_children:
        if clause.type != 'import_clause':
            continue
        for child in clause.named_children:
            if child.type == 'identifier':
                yield child, node_text(child), 'default'
            elif child.type == 'namespace_import':
                for ns_child in child.named_children:
                    if ns_child.type == 'identifier':
                        yield child, node_text(ns_child), None
            elif child.type == 'named_imports':
                for specifier in child.named_children:
                    if specifier.type != 'import_specifier':
                        continue
                    name_node = specifier.child_by_field_name('name')
                    alias_node = specifier.child_by_field_name('alias')
                    imported = module_export_name(name_node)
                    local = node_text(alias_node) if alias_node else imported
                    yield specifier, local, imported


def _destructured_property(prop: Node) -> Tuple[Optional[Node], Optional[Node]]:
    """Split an object-pattern entry into (key, value pattern).

    A shorthand entry binds a plain identifier and a defaulted entry binds an
    assignment pattern; neither is descended into.
    """
    if prop.type == 'shorthand_property_identifier_pattern':
        return prop, None
    if prop.type == 'object_assignment_pattern':
        left = prop.child_by_field_name('left')
        if left is not None and left.type == 'shorthand_property_identifier_pattern':
            return left, None
        return None, None
    if prop.type == 'pair_pattern':
        return prop.child_by_field_name('key'), prop.child_by_field_name('value')
    return None, None
