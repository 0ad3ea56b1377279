"""
Naming utilities for flattened declarations.

Turns name templates such as ``{schema}{table}{operation}`` into concrete
identifiers and derives the validator variable names that the downstream
validator generator produces for each flattened type.
"""

import re
from typing import Mapping, Protocol

SCHEMA_SUFFIX = "Schema"
PRESERVED_SCHEMA_SUFFIX = "schema"

# Placeholder role that is governed by ``capitalize_schema``; every other
# placeholder follows ``capitalize_names``.
SCHEMA_PLACEHOLDER = "schema"

_NON_ALPHANUMERIC = re.compile(r"[^A-Za-z0-9]+")
_NON_IDENTIFIER = re.compile(r"[^A-Za-z0-9_]")
_CASE_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


class CapitalizationRules(Protocol):
    """The part of the naming configuration ``format_name`` needs."""

    capitalize_schema: bool
    capitalize_names: bool


def capitalize_words(value: str) -> str:
    """Convert ``snake_case`` (or a single word) to capitalized-word form.

    ``user_profile`` becomes ``UserProfile``; a value without underscores only
    gets its first character upper-cased and the rest lower-cased.
    """
    if "_" in value:
        return "".join(part[:1].upper() + part[1:].lower() for part in value.split("_"))
    return value[:1].upper() + value[1:].lower()


def format_name(
    template: str, placeholders: Mapping[str, str], config: CapitalizationRules
) -> str:
    """
    Fill a name template with placeholder values.

    Args:
        template: Template such as ``{schema}_{table}_{operation}``
        placeholders: Values keyed by placeholder name (without braces)
        config: Capitalization flags

    Returns:
        The formatted name. Placeholders without a value stay as literal
        ``{key}`` text; repeated placeholders are all substituted.
    """
    result = template

    for key, value in placeholders.items():
        if key == SCHEMA_PLACEHOLDER:
            capitalize = config.capitalize_schema
        else:
            capitalize = config.capitalize_names

        formatted_value = capitalize_words(value) if capitalize else value
        result = result.replace("{" + key + "}", formatted_value)

    return result


def to_schema_variable_name(name: str, preserve_separators: bool = False) -> str:
    """
    Derive the validator variable name for a flattened type name.

    Args:
        name: Flattened declaration name (``PublicUsersInsert``)
        preserve_separators: Produce ``snake_case`` instead of camelCase

    Returns:
        ``publicUsersInsertSchema`` (or ``public_users_insert_schema``). The
        suffix is never appended twice.
    """
    if not preserve_separators:
        parts = [part for part in _NON_ALPHANUMERIC.split(name) if part]
        if not parts:
            return name if name.endswith(SCHEMA_SUFFIX) else f"{name}{SCHEMA_SUFFIX}"

        pascal_case = "".join(part[:1].upper() + part[1:] for part in parts)
        camel_case = pascal_case[:1].lower() + pascal_case[1:]

        if camel_case.endswith(SCHEMA_SUFFIX):
            return camel_case
        return f"{camel_case}{SCHEMA_SUFFIX}"

    normalized = _CASE_BOUNDARY.sub(r"\1_\2", name)
    normalized = _NON_ALPHANUMERIC.sub("_", normalized)
    normalized = re.sub(r"_{2,}", "_", normalized).strip("_").lower()

    if not normalized:
        return PRESERVED_SCHEMA_SUFFIX

    if normalized.endswith(PRESERVED_SCHEMA_SUFFIX):
        return normalized
    return f"{normalized}_{PRESERVED_SCHEMA_SUFFIX}"


def default_type_name_transformer(name: str) -> str:
    """Transform ``snake_case`` or ``camelCase`` to ``PascalCase``."""
    if "_" in name:
        return "".join(part[:1].upper() + part[1:].lower() for part in name.split("_"))
    return name[:1].upper() + name[1:]


def has_non_identifier_chars(name: str) -> bool:
    """True when ``name`` holds characters outside ``[A-Za-z0-9_]``."""
    return bool(_NON_IDENTIFIER.search(name))


def template_placeholders(template: str) -> list[str]:
    """List the placeholder keys used in a template, in order of appearance."""
    return re.findall(r"\{([A-Za-z_]+)\}", template)
