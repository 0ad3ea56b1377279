"""
Type flattening engine.

Walks one schema of the root database declaration and emits a standalone,
independently named type declaration for every table operation, enum,
composite type and function argument/return shape.

Results are folded into an immutable ``FlattenResult`` so several schemas can
be flattened one after another and rewritten together.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from tree_sitter import Node

from ..logging_config import get_logger
from .config import DEFAULT_NAMING_CONFIG, NamingConfig
from .locator import DEFAULT_ROOT_NAME, RootLocation, locate_root
from .naming import format_name, has_non_identifier_chars, to_schema_variable_name
from .syntax import (
    SourceTree,
    is_empty_tuple,
    is_map_literal,
    iter_descendants,
    type_arguments,
)
from .templates import render_declaration, render_types_file

logger = get_logger(__name__)

UNKNOWN_ARRAY = "unknown[]"
EMPTY_OBJECT = "{}"

PASSTHROUGH_ALIASES = ("Json",)

ENUM_NODES = ("union_type", "literal_type")
OPERATION_NODES = ("object_type", "tuple_type")
FUNCTION_MEMBERS = ("Args", "Returns")

_NUMERIC_RECORD = re.compile(r"Record<\s*number\b")


class DeclarationCategory(Enum):
    """Kinds of flattened declarations."""

    TABLE_OPERATION = "table_operation"
    ENUM = "enum"
    COMPOSITE_TYPE = "composite_type"
    FUNCTION_ARGS = "function_args"
    FUNCTION_RETURNS = "function_returns"

    @property
    def pattern_field(self) -> str:
        """NamingConfig field holding the declaration name template."""
        return f"{self.value}_pattern"

    @property
    def schema_pattern_field(self) -> str:
        """NamingConfig field holding the validator name template."""
        if self is DeclarationCategory.TABLE_OPERATION:
            return "table_schema_pattern"
        return f"{self.value}_schema_pattern"


@dataclass(frozen=True)
class FlatDeclaration:
    """One standalone type extracted from the nested root declaration."""

    category: DeclarationCategory
    schema_key: str
    entity_name: str
    member: Optional[str]
    formatted_name: str
    body_text: str
    source_category: str

    def render(self) -> str:
        return render_declaration(self.formatted_name, self.body_text)


@dataclass(frozen=True)
class SchemaNameMapping:
    """Flattened type name and the validator variable that should represent it."""

    type_name: str
    schema_name: str


@dataclass(frozen=True)
class FlattenResult:
    """Accumulated output of one or more flattening passes."""

    declarations: Tuple[FlatDeclaration, ...] = ()
    mappings: Tuple[SchemaNameMapping, ...] = ()
    passthrough: Tuple[str, ...] = ()

    def extend(
        self,
        declarations: Iterable[FlatDeclaration] = (),
        mappings: Iterable[SchemaNameMapping] = (),
        passthrough: Iterable[str] = (),
    ) -> "FlattenResult":
        """Return a new result with the given items appended."""
        extra_passthrough = []
        for block in passthrough:
            if block not in self.passthrough and block not in extra_passthrough:
                extra_passthrough.append(block)

        return FlattenResult(
            declarations=self.declarations + tuple(declarations),
            mappings=self.mappings + tuple(mappings),
            passthrough=self.passthrough + tuple(extra_passthrough),
        )

    @property
    def formatted_names(self) -> List[str]:
        return [d.formatted_name for d in self.declarations]

    def for_schema(self, schema: str) -> List[FlatDeclaration]:
        return [d for d in self.declarations if d.schema_key == schema]

    def unique_declarations(self) -> List[FlatDeclaration]:
        """
        Declarations with exact repeats removed.

        A foreign enum pulled into one schema is emitted again when its own
        schema is flattened in the same run; the repeat is dropped. Names that
        repeat with a different body are kept and reported.
        """
        seen: Dict[str, FlatDeclaration] = {}
        unique = []

        for declaration in self.declarations:
            previous = seen.get(declaration.formatted_name)
            if previous is None:
                seen[declaration.formatted_name] = declaration
                unique.append(declaration)
            elif previous.body_text != declaration.body_text:
                logger.warning(
                    "Name collision: %s is generated for both %s.%s and %s.%s",
                    declaration.formatted_name,
                    previous.schema_key,
                    previous.entity_name,
                    declaration.schema_key,
                    declaration.entity_name,
                )
                unique.append(declaration)

        return unique


def build_placeholders(
    category: DeclarationCategory, schema: str, entity: str, member: Optional[str]
) -> Dict[str, str]:
    """Placeholder values for a category's name templates."""
    if category is DeclarationCategory.TABLE_OPERATION:
        return {"schema": schema, "table": entity, "operation": member or ""}
    if category in (DeclarationCategory.FUNCTION_ARGS, DeclarationCategory.FUNCTION_RETURNS):
        return {"schema": schema, "function": entity}
    return {"schema": schema, "name": entity}


class SchemaFlattener:
    """Flattens schemas of one parsed source file."""

    def __init__(
        self,
        tree: SourceTree,
        naming_config: NamingConfig = DEFAULT_NAMING_CONFIG,
        root_name: str = DEFAULT_ROOT_NAME,
    ):
        self.tree = tree
        self.naming_config = naming_config
        self.root_name = root_name
        self.location: RootLocation = locate_root(tree, root_name)

    def flatten(
        self,
        schema: str,
        process_dependencies: bool = True,
        result: Optional[FlattenResult] = None,
    ) -> FlattenResult:
        """
        Flatten one schema and fold it into ``result``.

        Args:
            schema: Schema key to flatten
            process_dependencies: Also emit enums of other schemas that this
                schema references
            result: Accumulator from earlier passes

        Returns:
            A new FlattenResult; ``result`` is not modified
        """
        result = result or FlattenResult()
        result = result.extend(passthrough=self._passthrough_aliases())

        schema_node = self.location.schema_node(schema)
        if schema_node is None:
            logger.debug("Schema %s not found in %s", schema, self.root_name)
            return result

        emitted: List[Tuple[FlatDeclaration, SchemaNameMapping]] = []

        for category in ("Tables", "Views"):
            category_map = self.tree.member_map(schema_node, category)
            if category_map is not None:
                emitted.extend(self._tables(schema, category, category_map))

        enums_map = self.tree.member_map(schema_node, "Enums")
        if enums_map is not None:
            emitted.extend(self._enums(schema, enums_map))

        composites_map = self.tree.member_map(schema_node, "CompositeTypes")
        if composites_map is not None:
            emitted.extend(self._composite_types(schema, composites_map))

        functions_map = self.tree.member_map(schema_node, "Functions")
        if functions_map is not None:
            emitted.extend(self._functions(schema, functions_map))

        if process_dependencies:
            emitted.extend(self._foreign_enums(schema, schema_node))

        logger.debug("Flattened %d declarations for schema %s", len(emitted), schema)
        return result.extend(
            declarations=[declaration for declaration, _ in emitted],
            mappings=[mapping for _, mapping in emitted],
        )

    # Category handlers

    def _tables(self, schema: str, category: str, tables: Node):
        for table_name, table_type in self.tree.iter_properties(tables):
            if not is_map_literal(table_type):
                continue

            logger.debug("Processing table/view: %s", table_name)
            for operation, operation_type in self.tree.iter_properties(table_type):
                if operation_type.type not in OPERATION_NODES:
                    continue
                emitted = self._emit(
                    DeclarationCategory.TABLE_OPERATION,
                    schema,
                    table_name,
                    operation,
                    self._body_text(operation_type),
                    category,
                )
                if emitted:
                    yield emitted

    def _enums(self, schema: str, enums: Node):
        for enum_name, enum_type in self.tree.iter_properties(enums):
            if enum_type.type not in ENUM_NODES:
                continue
            emitted = self._emit(
                DeclarationCategory.ENUM,
                schema,
                enum_name,
                None,
                self.tree.text(enum_type),
                "Enums",
            )
            if emitted:
                yield emitted

    def _composite_types(self, schema: str, composites: Node):
        for type_name, composite_type in self.tree.iter_properties(composites):
            if not is_map_literal(composite_type):
                continue
            emitted = self._emit(
                DeclarationCategory.COMPOSITE_TYPE,
                schema,
                type_name,
                None,
                self._body_text(composite_type),
                "CompositeTypes",
            )
            if emitted:
                yield emitted

    def _functions(self, schema: str, functions: Node):
        for function_name, function_type in self.tree.iter_properties(functions):
            if not is_map_literal(function_type):
                continue

            members = dict(self.tree.iter_properties(function_type))
            for member in FUNCTION_MEMBERS:
                member_type = members.get(member)
                if member_type is None:
                    continue

                category = (
                    DeclarationCategory.FUNCTION_ARGS
                    if member == "Args"
                    else DeclarationCategory.FUNCTION_RETURNS
                )
                logger.debug(
                    "Processing function %s.%s, node type: %s",
                    function_name,
                    member,
                    member_type.type,
                )
                emitted = self._emit(
                    category,
                    schema,
                    function_name,
                    member,
                    self._function_body(member_type),
                    "Functions",
                )
                if emitted:
                    yield emitted

    def _foreign_enums(self, schema: str, schema_node: Node):
        """Enums of other schemas that this schema's members refer to."""
        referencing_text = self._referencing_text(schema_node)

        for other_schema in self.location.schema_keys:
            if other_schema == schema:
                continue

            other_node = self.location.schema_node(other_schema)
            enums = self.tree.member_map(other_node, "Enums") if other_node is not None else None
            if enums is None:
                continue

            for enum_name, enum_type in self.tree.iter_properties(enums):
                if enum_type.type not in ENUM_NODES:
                    continue
                if not self._is_referenced(referencing_text, other_schema, enum_name):
                    continue

                logger.debug("Pulling in enum %s.%s for %s", other_schema, enum_name, schema)
                emitted = self._emit(
                    DeclarationCategory.ENUM,
                    other_schema,
                    enum_name,
                    None,
                    self.tree.text(enum_type),
                    "Enums",
                )
                if emitted:
                    yield emitted

    # Helpers

    def _emit(
        self,
        category: DeclarationCategory,
        schema: str,
        entity: str,
        member: Optional[str],
        body_text: str,
        source_category: str,
    ) -> Optional[Tuple[FlatDeclaration, SchemaNameMapping]]:
        """Name a declaration and its validator; None when it is filtered out."""
        if _NUMERIC_RECORD.search(body_text):
            logger.debug("Skipping %s.%s: numeric-indexed record", schema, entity)
            return None

        placeholders = build_placeholders(category, schema, entity, member)
        formatted_name = format_name(
            getattr(self.naming_config, category.pattern_field),
            placeholders,
            self.naming_config,
        )
        schema_name = to_schema_variable_name(
            format_name(
                getattr(self.naming_config, category.schema_pattern_field),
                placeholders,
                self.naming_config,
            ),
            preserve_separators=has_non_identifier_chars(entity),
        )
        logger.debug("Generated type name %s (validator %s)", formatted_name, schema_name)

        declaration = FlatDeclaration(
            category=category,
            schema_key=schema,
            entity_name=entity,
            member=member,
            formatted_name=formatted_name,
            body_text=body_text,
            source_category=source_category,
        )
        return declaration, SchemaNameMapping(formatted_name, schema_name)

    def _body_text(self, node: Node) -> str:
        """Node text with empty tuples and ``never[]`` rendered as ``unknown[]``."""
        if _is_empty_array(self.tree, node):
            return UNKNOWN_ARRAY

        replacements = {
            (child.start_byte, child.end_byte): UNKNOWN_ARRAY
            for child in iter_descendants(node)
            if _is_empty_array(self.tree, child)
        }
        return self.tree.render(node, replacements)

    def _function_body(self, node: Node) -> str:
        if node.type == "predefined_type" and self.tree.text(node) == "boolean":
            return "boolean"
        if _is_empty_record(self.tree, node):
            return EMPTY_OBJECT
        return self._body_text(node)

    def _referencing_text(self, schema_node: Node) -> str:
        """Source text of the members that may refer to foreign enums."""
        parts = []
        for category in ("Tables", "Views", "Functions"):
            category_node = self.tree.member_map(schema_node, category)
            if category_node is not None:
                parts.append(self.tree.text(category_node))
        return "\n".join(parts)

    def _is_referenced(self, text: str, schema: str, enum_name: str) -> bool:
        return any(
            nested_path(self.root_name, (schema, "Enums", enum_name), quote) in text
            for quote in ("'", '"')
        )

    def _passthrough_aliases(self) -> List[str]:
        blocks = []
        for alias in PASSTHROUGH_ALIASES:
            declaration = self.tree.find_declaration(alias)
            if declaration is not None and declaration.type == "type_alias_declaration":
                blocks.append(self.tree.statement_text(declaration))
        return blocks


def nested_path(root_name: str, segments: Iterable[str], quote: str = "'") -> str:
    """``Root['a']['b']`` lookup text for the given segments."""
    return root_name + "".join(f"[{quote}{segment}{quote}]" for segment in segments)


def flatten_schema(
    tree: SourceTree,
    schema: str,
    naming_config: NamingConfig = DEFAULT_NAMING_CONFIG,
    process_dependencies: bool = True,
    root_name: str = DEFAULT_ROOT_NAME,
    result: Optional[FlattenResult] = None,
) -> FlattenResult:
    """Flatten ``schema`` of ``tree`` and fold it into ``result``."""
    flattener = SchemaFlattener(tree, naming_config, root_name)
    return flattener.flatten(schema, process_dependencies, result)


def render_declarations(result: FlattenResult) -> str:
    """
    Assemble flattened declarations into types-file text.

    Passthrough aliases come first, then enums (hoisted), then every other
    declaration in emission order.
    """
    declarations = result.unique_declarations()
    enums = [d.render() for d in declarations if d.category is DeclarationCategory.ENUM]
    others = [d.render() for d in declarations if d.category is not DeclarationCategory.ENUM]
    return render_types_file([list(result.passthrough), enums, others])


def _is_empty_array(tree: SourceTree, node: Node) -> bool:
    if is_empty_tuple(node):
        return True
    if node.type != "array_type":
        return False
    element = node.named_children[0] if node.named_children else None
    return (
        element is not None
        and element.type == "predefined_type"
        and tree.text(element) == "never"
    )


def _is_empty_record(tree: SourceTree, node: Node) -> bool:
    """``Record<PropertyKey, never>`` and friends: an object with no properties."""
    if node.type != "generic_type":
        return False
    name = node.child_by_field_name("name")
    arguments = type_arguments(node)
    return (
        name is not None
        and tree.text(name) == "Record"
        and len(arguments) == 2
        and arguments[1].type == "predefined_type"
        and tree.text(arguments[1]) == "never"
    )
