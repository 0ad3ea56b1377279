"""
Syntax-tree access for generated database type files.

Wraps a tree-sitter TypeScript parse tree with the handful of structural
queries the flattener needs: finding declarations, walking object type
members, and reading their names and declared types as text.
"""

from typing import Dict, Iterator, List, Optional, Tuple

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

TYPESCRIPT = Language(tree_sitter_typescript.language_typescript())

DECLARATION_NODES = ("type_alias_declaration", "interface_declaration")
MAP_LITERAL_NODES = ("object_type", "interface_body")

# Nodes that never hold declarations, skipped while searching for them
_TYPE_NODES = frozenset(
    {
        "object_type",
        "union_type",
        "tuple_type",
        "array_type",
        "generic_type",
        "lookup_type",
        "literal_type",
    }
)


class SourceTree:
    """A parsed TypeScript source file."""

    def __init__(self, source_text: str):
        self.source_text = source_text
        self.source_bytes = source_text.encode("utf-8")
        self.tree = Parser(TYPESCRIPT).parse(self.source_bytes)

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def text(self, node: Node) -> str:
        """Source text spanned by ``node``."""
        return self.source_bytes[node.start_byte : node.end_byte].decode("utf-8")

    def render(self, node: Node, replacements: Dict[Tuple[int, int], str]) -> str:
        """
        Source text of ``node`` with sub-node spans replaced.

        Args:
            node: Node whose text is rendered
            replacements: ``(start_byte, end_byte) -> text`` for non-overlapping
                spans inside the node

        Returns:
            The spliced text
        """
        return self._splice(node.start_byte, node.end_byte, replacements)

    def render_source(self, replacements: Dict[Tuple[int, int], str]) -> str:
        """The whole file with the given spans replaced."""
        return self._splice(0, len(self.source_bytes), replacements)

    def _splice(self, start: int, end: int, replacements: Dict[Tuple[int, int], str]) -> str:
        chunks = []
        cursor = start
        for (span_start, span_end), text in sorted(replacements.items()):
            chunks.append(self.source_bytes[cursor:span_start].decode("utf-8"))
            chunks.append(text)
            cursor = span_end
        chunks.append(self.source_bytes[cursor:end].decode("utf-8"))
        return "".join(chunks)

    # Declarations

    def iter_declarations(self) -> Iterator[Node]:
        """Yield every type alias and interface declaration in the file."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            if node.type in DECLARATION_NODES:
                yield node
                continue
            if node.type in _TYPE_NODES:
                continue
            stack.extend(reversed(node.named_children))

    def find_declaration(self, name: str) -> Optional[Node]:
        """First declaration named ``name``, if any."""
        for declaration in self.iter_declarations():
            if self.declaration_name(declaration) == name:
                return declaration
        return None

    def declaration_name(self, declaration: Node) -> Optional[str]:
        name_node = declaration.child_by_field_name("name")
        return self.text(name_node) if name_node is not None else None

    def declaration_type(self, declaration: Node) -> Optional[Node]:
        """The aliased type of a type alias, or the body of an interface."""
        if declaration.type == "interface_declaration":
            return declaration.child_by_field_name("body")
        value = declaration.child_by_field_name("value")
        return unwrap(value) if value is not None else None

    def statement_text(self, declaration: Node) -> str:
        """Text of a declaration including an enclosing ``export``."""
        parent = declaration.parent
        if parent is not None and parent.type == "export_statement":
            return self.text(parent)
        return self.text(declaration)

    # Object type members

    def property_members(self, map_node: Node) -> List[Node]:
        """Property signatures of an object type or interface body."""
        return [child for child in map_node.named_children if child.type == "property_signature"]

    def property_name(self, prop: Node) -> str:
        """Property key with surrounding quotes removed."""
        name_node = prop.child_by_field_name("name")
        if name_node is None:
            return ""
        name = self.text(name_node)
        if name_node.type == "string" and len(name) >= 2 and name[0] in "'\"`":
            return name[1:-1]
        return name

    def property_type(self, prop: Node) -> Optional[Node]:
        """Declared type of a property signature (parentheses unwrapped)."""
        annotation = prop.child_by_field_name("type")
        if annotation is None:
            return None
        types = [child for child in annotation.named_children if child.type != "comment"]
        return unwrap(types[-1]) if types else None

    def iter_properties(self, map_node: Node) -> Iterator[Tuple[str, Node]]:
        """Yield ``(name, type_node)`` for each typed member, in source order."""
        for prop in self.property_members(map_node):
            type_node = self.property_type(prop)
            if type_node is not None:
                yield self.property_name(prop), type_node

    def member_map(self, map_node: Node, name: str) -> Optional[Node]:
        """The map literal declared for member ``name``, if it is one."""
        for member_name, type_node in self.iter_properties(map_node):
            if member_name == name:
                return type_node if is_map_literal(type_node) else None
        return None


def unwrap(node: Node) -> Node:
    """Strip redundant parentheses around a type."""
    while node.type == "parenthesized_type":
        inner = [child for child in node.named_children if child.type != "comment"]
        if not inner:
            break
        node = inner[0]
    return node


def type_arguments(node: Node) -> List[Node]:
    """Type arguments of a generic type reference."""
    arguments = node.child_by_field_name("type_arguments")
    if arguments is None:
        return []
    return [unwrap(child) for child in arguments.named_children if child.type != "comment"]


def is_map_literal(node: Node) -> bool:
    return node.type in MAP_LITERAL_NODES


def is_empty_tuple(node: Node) -> bool:
    return node.type == "tuple_type" and not any(
        child.type != "comment" for child in node.named_children
    )


def iter_descendants(node: Node) -> Iterator[Node]:
    """Depth-first walk over named descendants (``node`` excluded)."""
    stack = list(reversed(node.named_children))
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.named_children))
