"""
Locate the root database declaration and its schema keys.

Two root shapes are recognised::

    export type Database = { public: {...}; auth: {...} }

    export type Database = MergeDeep<DatabaseGenerated, { public: {...} }>

For the merge shape only the first type argument is consulted. It may be a
map literal or the name of another declaration in the same file.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from tree_sitter import Node

from ..logging_config import get_logger
from .syntax import SourceTree, is_map_literal, type_arguments

logger = get_logger(__name__)

DEFAULT_ROOT_NAME = "Database"
MERGE_TYPE_NAMES = frozenset({"MergeDeep"})


@dataclass(frozen=True)
class RootLocation:
    """The root map literal and the schema keys it declares."""

    tree: SourceTree
    node: Optional[Node]
    schema_keys: Tuple[str, ...] = ()

    @property
    def found(self) -> bool:
        return self.node is not None

    def schema_node(self, schema: str) -> Optional[Node]:
        """Member map of ``schema``, or None when absent."""
        if self.node is None:
            return None
        return self.tree.member_map(self.node, schema)


def locate_root(tree: SourceTree, root_name: str = DEFAULT_ROOT_NAME) -> RootLocation:
    """
    Find the root map literal in a parsed file.

    Args:
        tree: Parsed source
        root_name: Name of the root declaration

    Returns:
        RootLocation; ``node`` is None when no declaration matches either shape
    """
    declaration = tree.find_declaration(root_name)
    if declaration is None:
        logger.debug("No %s declaration found", root_name)
        return RootLocation(tree, None)

    root_type = tree.declaration_type(declaration)
    map_node = None

    if root_type is not None and is_map_literal(root_type):
        map_node = root_type
    elif root_type is not None and _is_merge(tree, root_type):
        map_node = _resolve_map(tree, type_arguments(root_type)[0])
        logger.debug("Found %s as a merge of two types", root_name)

    if map_node is None:
        logger.debug("%s does not resolve to a map literal", root_name)
        return RootLocation(tree, None)

    keys = tuple(name for name, _ in tree.iter_properties(map_node))
    logger.debug("Found %d schemas: %s", len(keys), ", ".join(keys))
    return RootLocation(tree, map_node, keys)


def get_all_schemas(source_text: str, root_name: str = DEFAULT_ROOT_NAME) -> list[str]:
    """Ordered top-level schema keys of the root declaration."""
    return list(locate_root(SourceTree(source_text), root_name).schema_keys)


def _is_merge(tree: SourceTree, node: Node) -> bool:
    if node.type != "generic_type":
        return False
    name = node.child_by_field_name("name")
    return (
        name is not None
        and tree.text(name) in MERGE_TYPE_NAMES
        and len(type_arguments(node)) == 2
    )


def _resolve_map(tree: SourceTree, node: Node) -> Optional[Node]:
    """A map literal, or a reference to a declaration that is one."""
    if is_map_literal(node):
        return node

    if node.type == "type_identifier":
        target = tree.find_declaration(tree.text(node))
        if target is not None:
            target_type = tree.declaration_type(target)
            if target_type is not None and is_map_literal(target_type):
                return target_type

    return None
