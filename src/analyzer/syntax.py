"""Small helpers over tree-sitter nodes shared by the analyzers."""
from typing import Iterator, List, Optional

from tree_sitter import Node


def node_text(node: Node) -> str:
    return node.text.decode('utf-8')


def unquote(text: str) -> str:
    return text.strip('"\'`')


def string_value(node: Optional[Node]) -> Optional[str]:
    """Value of a string literal node (module specifiers, quoted export names)."""
    if node is None:
        return None
    return unquote(node_text(node))


def module_export_name(node: Node) -> str:
    """Name of an identifier, `default` keyword or string-literal export name."""
    if node.type == 'string':
        return string_value(node)
    return node_text(node)


def same_node(a: Optional[Node], b: Optional[Node]) -> bool:
    if a is None or b is None:
        return False
    return (a.type, a.start_byte, a.end_byte) == (b.type, b.start_byte, b.end_byte)


def has_child_token(node: Node, token: str) -> bool:
    """True if an anonymous child token (e.g. 'default', '*') is present."""
    return any(child.type == token for child in node.children)


def pattern_names(pattern: Optional[Node]) -> List[str]:
    """All identifiers bound by a declaration/parameter pattern."""
    return list(_iter_pattern_names(pattern))


def _iter_pattern_names(pattern: Optional[Node]) -> Iterator[str]:
    if pattern is None:
        return
    kind = pattern.type
    if kind in ('identifier', 'shorthand_property_identifier_pattern'):
        yield node_text(pattern)
    elif kind == 'object_pattern':
        for prop in pattern.named_children:
            if prop.type == 'pair_pattern':
                yield from _iter_pattern_names(prop.child_by_field_name('value'))
            elif prop.type == 'object_assignment_pattern':
                yield from _iter_pattern_names(prop.child_by_field_name('left'))
            else:
                yield from _iter_pattern_names(prop)
    elif kind in ('array_pattern', 'rest_pattern'):
        for child in pattern.named_children:
            yield from _iter_pattern_names(child)
    elif kind == 'assignment_pattern':
        yield from _iter_pattern_names(pattern.child_by_field_name('left'))
    elif kind in ('required_parameter', 'optional_parameter'):
        # TypeScript parameters wrap the pattern
        yield from _iter_pattern_names(pattern.child_by_field_name('pattern'))


def declared_names(declaration: Node) -> List[str]:
    """Names introduced by a declaration statement."""
    kind = declaration.type
    if kind in ('lexical_declaration', 'variable_declaration'):
        names = []
        for declarator in declaration.named_children:
            if declarator.type == 'variable_declarator':
                names.extend(pattern_names(declarator.child_by_field_name('name')))
        return names
    if kind == 'ambient_declaration':
        names = []
        for child in declaration.named_children:
            names.extend(declared_names(child))
        return names
    name = declaration.child_by_field_name('name')
    if name is not None and name.type in ('identifier', 'type_identifier'):
        return [node_text(name)]
    return []


def first_error_node(node: Node) -> Optional[Node]:
    """Depth-first search for the first ERROR or MISSING node."""
    if node.type == 'ERROR' or node.is_missing:
        return node
    if not node.has_error:
        return None
    for child in node.children:
        found = first_error_node(child)
        if found is not None:
            return found
    return None
