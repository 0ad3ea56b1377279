"""
Core flattening components.

Parsing, schema location, flattening, reference rewriting and naming used by
the pipeline and the CLI.
"""

from .config import (
    DEFAULT_NAMING_CONFIG,
    ConfigError,
    NamingConfig,
    SupaflatConfig,
    load_config,
    merge_naming_config,
)
from .flattener import (
    DeclarationCategory,
    FlatDeclaration,
    FlattenResult,
    SchemaFlattener,
    SchemaNameMapping,
    flatten_schema,
    render_declarations,
)
from .generator import (
    GENERATED_BANNER,
    GeneratorError,
    ValidatorGenerator,
    ValidatorOutput,
    replace_generated_comment,
    tidy_source,
)
from .locator import DEFAULT_ROOT_NAME, RootLocation, get_all_schemas, locate_root
from .naming import (
    default_type_name_transformer,
    format_name,
    to_schema_variable_name,
)
from .overrides import (
    NameConflict,
    OverridePlan,
    apply_identifier_overrides,
    compute_schema_name_overrides,
    protected_type_names,
    transform_type_names,
)
from .rewriter import NameReference, ReferenceRewriter, build_references, rewrite_references
from .syntax import SourceTree
from .templates import TemplateEngine, TemplateError

__all__ = [
    # Configuration
    "DEFAULT_NAMING_CONFIG",
    "ConfigError",
    "NamingConfig",
    "SupaflatConfig",
    "load_config",
    "merge_naming_config",
    # Flattening
    "DeclarationCategory",
    "FlatDeclaration",
    "FlattenResult",
    "SchemaFlattener",
    "SchemaNameMapping",
    "flatten_schema",
    "render_declarations",
    # Validator generator interface
    "GENERATED_BANNER",
    "GeneratorError",
    "ValidatorGenerator",
    "ValidatorOutput",
    "replace_generated_comment",
    "tidy_source",
    # Schema location
    "DEFAULT_ROOT_NAME",
    "RootLocation",
    "get_all_schemas",
    "locate_root",
    # Naming
    "default_type_name_transformer",
    "format_name",
    "to_schema_variable_name",
    # Overrides
    "NameConflict",
    "OverridePlan",
    "apply_identifier_overrides",
    "compute_schema_name_overrides",
    "protected_type_names",
    "transform_type_names",
    # Cross-references
    "NameReference",
    "ReferenceRewriter",
    "build_references",
    "rewrite_references",
    # Parsing and templates
    "SourceTree",
    "TemplateEngine",
    "TemplateError",
]
