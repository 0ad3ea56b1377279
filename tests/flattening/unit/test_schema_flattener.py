"""Flattening engine tests."""

from __future__ import annotations

from dataclasses import replace

from supaflat.core.config import DEFAULT_NAMING_CONFIG, NamingConfig
from supaflat.core.flattener import (
    DeclarationCategory,
    FlattenResult,
    flatten_schema,
    render_declarations,
)
from supaflat.core.syntax import SourceTree

EMPTY_ARRAYS = """export type Database = {
  public: {
    Tables: {
      posts: {
        Row: { id: number; tags: []; labels: never[]; names: string[] };
        Insert: [];
      };
    };
  };
};
"""

NUMERIC_RECORDS = """export type Database = {
  public: {
    Functions: {
      scores: {
        Args: { user_id: string };
        Returns: Record<number, string>;
      };
      ping: {
        Args: Record<string, never>;
        Returns: boolean;
      };
    };
  };
};
"""

ODD_NAMES = """export type Database = {
  public: {
    Tables: {
      'user-profile': {
        Row: { id: number };
      };
    };
  };
};
"""


def _flatten(source: str, schema: str, **options) -> FlattenResult:
    return flatten_schema(SourceTree(source), schema, **options)


def test_counts_one_declaration_per_entity(example_source: str) -> None:
    result = _flatten(example_source, "public")

    # 3 table operations + 1 view operation, 1 enum, 2 function members
    assert len(result.declarations) == 7
    assert result.formatted_names == [
        "PublicUsersRow",
        "PublicUsersInsert",
        "PublicUsersUpdate",
        "PublicNonUpdatableViewRow",
        "PublicUserStatus",
        "PublicGetStatusArgs",
        "PublicGetStatusReturns",
    ]


def test_every_declaration_gets_a_validator_mapping(example_source: str) -> None:
    result = _flatten(example_source, "public")

    assert len(result.mappings) == len(result.declarations)
    assert result.mappings[0].type_name == "PublicUsersRow"
    assert result.mappings[0].schema_name == "publicUsersRowSchema"


def test_categories_and_origins(example_source: str) -> None:
    declarations = {d.formatted_name: d for d in _flatten(example_source, "public").declarations}

    assert declarations["PublicUsersRow"].category is DeclarationCategory.TABLE_OPERATION
    assert declarations["PublicUsersRow"].source_category == "Tables"
    assert declarations["PublicNonUpdatableViewRow"].source_category == "Views"
    assert declarations["PublicUserStatus"].category is DeclarationCategory.ENUM
    assert declarations["PublicUserStatus"].body_text == "'ONLINE' | 'OFFLINE'"
    assert declarations["PublicGetStatusArgs"].body_text == "{ name_param: string }"


def test_cross_schema_enum_is_pulled_in(example_source: str) -> None:
    result = _flatten(example_source, "schema_b")
    pulled = [d for d in result.declarations if d.schema_key == "public"]

    assert [d.formatted_name for d in pulled] == ["PublicUserStatus"]
    assert pulled[0].category is DeclarationCategory.ENUM


def test_dependency_processing_can_be_disabled(example_source: str) -> None:
    result = _flatten(example_source, "schema_b", process_dependencies=False)

    assert all(d.schema_key == "schema_b" for d in result.declarations)


def test_function_members_are_normalized(example_source: str) -> None:
    declarations = {d.formatted_name: d for d in _flatten(example_source, "schema_b").declarations}

    assert declarations["SchemaBGetDeploymentConfigSchemaArgs"].body_text == "{}"
    assert declarations["SchemaBGetDeploymentConfigSchemaReturns"].body_text == "Json"


def test_boolean_returns_and_numeric_records() -> None:
    declarations = {d.formatted_name: d for d in _flatten(NUMERIC_RECORDS, "public").declarations}

    assert "PublicScoresReturns" not in declarations
    assert "PublicScoresArgs" in declarations
    assert declarations["PublicPingArgs"].body_text == "{}"
    assert declarations["PublicPingReturns"].body_text == "boolean"


def test_empty_arrays_become_unknown_arrays() -> None:
    declarations = {d.formatted_name: d for d in _flatten(EMPTY_ARRAYS, "public").declarations}
    row = declarations["PublicPostsRow"].body_text

    assert "tags: unknown[]" in row
    assert "labels: unknown[]" in row
    assert "names: string[]" in row
    assert "[]" not in row.replace("unknown[]", "").replace("string[]", "")
    assert declarations["PublicPostsInsert"].body_text == "unknown[]"


def test_missing_schema_yields_nothing(example_source: str) -> None:
    assert _flatten(example_source, "missing").declarations == ()
    assert _flatten("export type Database = string;", "public").declarations == ()


def test_json_alias_is_passed_through(example_source: str) -> None:
    result = _flatten(example_source, "public")

    assert len(result.passthrough) == 1
    assert result.passthrough[0].startswith("export type Json =")


def test_results_fold_across_schemas(example_source: str) -> None:
    tree = SourceTree(example_source)
    result = flatten_schema(tree, "public")
    result = flatten_schema(tree, "schema_b", result=result)

    assert len(result.for_schema("public")) == 8
    assert len(result.for_schema("schema_b")) == 9
    assert len(result.passthrough) == 1


def test_exact_repeats_are_rendered_once(example_source: str) -> None:
    tree = SourceTree(example_source)
    result = flatten_schema(tree, "public")
    result = flatten_schema(tree, "schema_b", result=result)

    rendered = render_declarations(result)

    assert rendered.count("export type PublicUserStatus =") == 1


def test_rendering_puts_passthrough_then_enums_first(example_source: str) -> None:
    rendered = render_declarations(_flatten(example_source, "public"))

    assert rendered.index("export type Json") < rendered.index("export type PublicUserStatus")
    assert rendered.index("export type PublicUserStatus") < rendered.index(
        "export type PublicUsersRow"
    )
    assert "export type PublicUserStatus = 'ONLINE' | 'OFFLINE';" in rendered


def test_custom_templates_drive_names(example_source: str) -> None:
    config = NamingConfig.from_dict(
        {
            "tableOperationPattern": "{schema}_{table}_{operation}",
            "tableSchemaPattern": "{table}{operation}Validator",
        }
    )

    result = _flatten(example_source, "public", naming_config=config)

    assert result.formatted_names[0] == "Public_Users_Row"
    assert result.mappings[0].schema_name == "usersRowValidatorSchema"


def test_entity_names_with_punctuation_keep_separators() -> None:
    config = replace(DEFAULT_NAMING_CONFIG, table_schema_pattern="{schema}_{table}_{operation}")

    result = _flatten(ODD_NAMES, "public", naming_config=config)

    assert result.formatted_names == ["PublicUser-profileRow"]
    assert result.mappings[0].schema_name == "public_user_profile_row_schema"
