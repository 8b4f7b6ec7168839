"""Lexical scope queries for JavaScript/TypeScript syntax trees.

Answers one question: at a given reference, which kind of scope declares a
name? A reference whose name resolves to the program scope still denotes the
module-level binding; anything else means the name was shadowed.
"""
from typing import Dict, Set, Tuple

from tree_sitter import Node

from .syntax import declared_names, node_text, pattern_names

FUNCTION_SCOPES = {
    'function_declaration',
    'function_expression',
    'function',
    'generator_function',
    'generator_function_declaration',
    'arrow_function',
    'method_definition',
}

BLOCK_SCOPES = {'statement_block', 'switch_body', 'for_statement', 'for_in_statement'}

# Class and function declarations bind their name in the enclosing block
BLOCK_DECLARATIONS = {
    'class_declaration',
    'abstract_class_declaration',
    'function_declaration',
    'generator_function_declaration',
    'enum_declaration',
    'internal_module',
}


def _node_key(node: Node) -> Tuple[str, int, int]:
    return (node.type, node.start_byte, node.end_byte)


class ScopeAnalyzer:
    """Per-file scope oracle. Declarations are computed once per scope node."""

    def __init__(self):
        self._declarations: Dict[Tuple[str, int, int], Set[str]] = {}

    def declared_scope(self, node: Node, name: str) -> str:
        """Kind of the innermost scope visible from `node` that declares `name`.

        Returns one of 'function', 'block', 'catch', 'class', 'module', or
        'global' when no scope declares it.
        """
        current = node.parent
        while current is not None:
            kind = self._scope_kind(current)
            if kind is not None and name in self._declared_in(current, kind):
                return kind
            current = current.parent
        return 'global'

    def _scope_kind(self, node: Node):
        kind = node.type
        if kind == 'program':
            return 'module'
        if kind in FUNCTION_SCOPES:
            return 'function'
        if kind == 'statement_block':
            # A function body belongs to the function's own scope
            parent = node.parent
            if parent is not None and parent.type in FUNCTION_SCOPES:
                return None
            return 'block'
        if kind in BLOCK_SCOPES:
            return 'block'
        if kind == 'catch_clause':
            return 'catch'
        if kind == 'class' and node.child_by_field_name('name') is not None:
            return 'class'
        return None

    def _declared_in(self, node: Node, kind: str) -> Set[str]:
        key = _node_key(node)
        names = self._declarations.get(key)
        if names is None:
            names = self._collect(node, kind)
            self._declarations[key] = names
        return names

    def _collect(self, node: Node, kind: str) -> Set[str]:
        names: Set[str] = set()

        if kind == 'module':
            for statement in node.named_children:
                if statement.type == 'import_statement':
                    names.update(_import_locals(statement))
                elif statement.type == 'export_statement':
                    declaration = statement.child_by_field_name('declaration')
                    if declaration is not None:
                        names.update(declared_names(declaration))
            names.update(_block_declarations(node))
            names.update(_var_declarations(node))

        elif kind == 'function':
            parameters = node.child_by_field_name('parameters')
            if parameters is not None:
                for parameter in parameters.named_children:
                    names.update(pattern_names(parameter))
            parameter = node.child_by_field_name('parameter')
            if parameter is not None:
                names.update(pattern_names(parameter))
            if node.type in ('function_expression', 'function', 'generator_function'):
                own_name = node.child_by_field_name('name')
                if own_name is not None:
                    names.add(node_text(own_name))
            body = node.child_by_field_name('body')
            if body is not None and body.type == 'statement_block':
                names.update(_block_declarations(body))
                names.update(_var_declarations(body))

        elif kind == 'block':
            if node.type == 'for_statement':
                initializer = node.child_by_field_name('initializer')
                if initializer is not None and initializer.type == 'lexical_declaration':
                    names.update(declared_names(initializer))
            elif node.type == 'for_in_statement':
                declaration_kind = node.child_by_field_name('kind')
                if declaration_kind is not None and node_text(declaration_kind) in ('let', 'const'):
                    names.update(pattern_names(node.child_by_field_name('left')))
            elif node.type == 'switch_body':
                for case in node.named_children:
                    names.update(_block_declarations(case))
            else:
                names.update(_block_declarations(node))

        elif kind == 'catch':
            names.update(pattern_names(node.child_by_field_name('parameter')))

        elif kind == 'class':
            names.add(node_text(node.child_by_field_name('name')))

        return names


def _import_locals(statement: Node) -> Set[str]:
    names = set()
    for clause in statement.named_children:
        if clause.type != 'import_clause':
            continue
        for child in clause.named_children:
            if child.type == 'identifier':
                names.add(node_text(child))
            elif child.type == 'namespace_import':
                names.update(node_text(c) for c in child.named_children if c.type == 'identifier')
            elif child.type == 'named_imports':
                for specifier in child.named_children:
                    if specifier.type != 'import_specifier':
                        continue
                    local = specifier.child_by_field_name('alias') or specifier.child_by_field_name('name')
                    names.add(node_text(local))
    return names


def _block_declarations(block: Node) -> Set[str]:
    """let/const/class/function declarations directly inside a block."""
    names = set()
    for statement in block.named_children:
        if statement.type == 'lexical_declaration':
            names.update(declared_names(statement))
        elif statement.type in BLOCK_DECLARATIONS:
            names.update(declared_names(statement))
    return names


def _var_declarations(node: Node) -> Set[str]:
    """Hoisted `var` names under `node`, not descending into nested functions."""
    names = set()
    stack = list(node.named_children)
    while stack:
        current = stack.pop()
        if current.type in FUNCTION_SCOPES:
            continue
        if current.type == 'variable_declaration':
            names.update(declared_names(current))
        elif current.type == 'for_in_statement':
            declaration_kind = current.child_by_field_name('kind')
            if declaration_kind is not None and node_text(declaration_kind) == 'var':
                names.update(pattern_names(current.child_by_field_name('left')))
        stack.extend(current.named_children)
    return names
