"""Name template and validator name tests."""

from __future__ import annotations

from dataclasses import replace

import pytest
from supaflat.core.config import DEFAULT_NAMING_CONFIG
from supaflat.core.naming import (
    capitalize_words,
    default_type_name_transformer,
    format_name,
    has_non_identifier_chars,
    template_placeholders,
    to_schema_variable_name,
)

TABLE = {"schema": "public", "table": "users", "operation": "Insert"}


def test_formats_with_default_configuration() -> None:
    assert format_name("{schema}{table}{operation}", TABLE, DEFAULT_NAMING_CONFIG) == (
        "PublicUsersInsert"
    )


def test_snake_case_values_become_capitalized_words() -> None:
    placeholders = {"schema": "my_schema", "table": "user_profile", "operation": "insert"}

    assert format_name("{schema}{table}{operation}", placeholders, DEFAULT_NAMING_CONFIG) == (
        "MySchemaUserProfileInsert"
    )
    assert format_name(
        "{schema}{table}{operation}",
        {"schema": "schema_b", "table": "users", "operation": "Update"},
        DEFAULT_NAMING_CONFIG,
    ) == "SchemaBUsersUpdate"


def test_capitalization_can_be_disabled() -> None:
    config = replace(DEFAULT_NAMING_CONFIG, capitalize_schema=False, capitalize_names=False)

    assert format_name("{schema}{table}{operation}", TABLE, config) == "publicusersInsert"


def test_mixed_capitalization_settings() -> None:
    config = replace(DEFAULT_NAMING_CONFIG, capitalize_schema=True, capitalize_names=False)

    assert format_name("{schema}_{table}_{operation}", TABLE, config) == "Public_users_Insert"


@pytest.mark.parametrize(
    ("template", "placeholders", "expected"),
    [
        ("{schema}_{table}_{operation}_Type", TABLE, "Public_Users_Insert_Type"),
        ("{schema}-{table}-{operation}", TABLE, "Public-Users-Insert"),
        ("{schema}{name}", {"schema": "public", "name": "user_status"}, "PublicUserStatus"),
        (
            "{schema}{function}Args",
            {"schema": "public", "function": "get_status"},
            "PublicGetStatusArgs",
        ),
        (
            "{name}_{schema}_{schema}_Enum",
            {"schema": "public", "name": "student_status"},
            "StudentStatus_Public_Public_Enum",
        ),
        (
            "{schema}_{table}_{operation}",
            {"schema": "my_complex_schema", "table": "user_profile_data", "operation": "bulk_insert"},
            "MyComplexSchema_UserProfileData_BulkInsert",
        ),
    ],
)
def test_custom_templates(template: str, placeholders: dict, expected: str) -> None:
    assert format_name(template, placeholders, DEFAULT_NAMING_CONFIG) == expected


def test_missing_placeholders_stay_literal() -> None:
    placeholders = {"schema": "public", "table": "users"}

    assert format_name("{schema}{table}{missing}", placeholders, DEFAULT_NAMING_CONFIG) == (
        "PublicUsers{missing}"
    )


def test_capitalize_words_lowercases_the_rest_of_each_word() -> None:
    assert capitalize_words("user_profile") == "UserProfile"
    assert capitalize_words("Insert") == "Insert"
    assert capitalize_words("ONLINE") == "Online"


def test_validator_name_is_camel_case_with_suffix() -> None:
    assert to_schema_variable_name("PublicUsersInsert") == "publicUsersInsertSchema"
    assert to_schema_variable_name("Public_Users_Insert") == "publicUsersInsertSchema"


def test_validator_suffix_is_never_doubled() -> None:
    once = to_schema_variable_name("PublicUsersInsert")

    assert to_schema_variable_name("PublicUsersSchema") == "publicUsersSchema"
    assert to_schema_variable_name(once) == once


def test_empty_validator_names() -> None:
    assert to_schema_variable_name("") == "Schema"
    assert to_schema_variable_name("", preserve_separators=True) == "schema"


def test_preserved_separators_produce_snake_case() -> None:
    assert to_schema_variable_name("Public_Users_Insert_Schema", True) == (
        "public_users_insert_schema"
    )
    assert to_schema_variable_name("Public Users Insert Schema", True) == (
        "public_users_insert_schema"
    )


def test_default_type_name_transformer() -> None:
    assert default_type_name_transformer("public_users_row") == "PublicUsersRow"
    assert default_type_name_transformer("publicUsersRow") == "PublicUsersRow"


def test_identifier_character_check() -> None:
    assert has_non_identifier_chars("user-profile")
    assert has_non_identifier_chars("user profile")
    assert not has_non_identifier_chars("user_profile")


def test_template_placeholders_in_order() -> None:
    assert template_placeholders("{schema}_{table}_{schema}") == ["schema", "table", "schema"]
