"""
supaflat - flatten generated Supabase database types.

Turns the nested ``Database`` type emitted by ``supabase gen types typescript``
into standalone, individually named declarations that a validator generator
can consume.
"""

__version__ = "0.1.0"

from .core import (
    DEFAULT_NAMING_CONFIG,
    NamingConfig,
    ValidatorGenerator,
    ValidatorOutput,
    format_name,
    get_all_schemas,
    load_config,
    to_schema_variable_name,
)
from .pipeline import (
    GenerationOptions,
    SchemaSelectionError,
    collect_types,
    generate_content,
    get_import_path,
    run,
)
from .registry import GeneratorRegistry, get_generator, list_generators


def flatten_types(source_text, schemas=(), naming_config=None, **options) -> str:
    """
    Flatten database types text.

    Args:
        source_text: Generated database type file contents
        schemas: Schemas to flatten (default: all)
        naming_config: NamingConfig or dict of naming options
        **options: ``process_dependencies``, ``root_name``

    Returns:
        Flattened declarations
    """
    if isinstance(naming_config, dict):
        naming_config = NamingConfig.from_dict(naming_config)
    return collect_types(
        source_text,
        schemas,
        naming_config or DEFAULT_NAMING_CONFIG,
        **options,
    ).text


__all__ = [
    "__version__",
    "DEFAULT_NAMING_CONFIG",
    "NamingConfig",
    "ValidatorGenerator",
    "ValidatorOutput",
    "format_name",
    "get_all_schemas",
    "load_config",
    "to_schema_variable_name",
    "GenerationOptions",
    "SchemaSelectionError",
    "collect_types",
    "generate_content",
    "get_import_path",
    "run",
    "GeneratorRegistry",
    "get_generator",
    "list_generators",
    "flatten_types",
]
