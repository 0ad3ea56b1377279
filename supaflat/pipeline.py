"""
End-to-end generation pipeline.

Reads a generated database type file, flattens the requested schemas,
rewrites cross-references, hands the result to a validator generator and
post-processes its output (validator name overrides, banner, type names,
formatting) before writing the files.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .core.config import DEFAULT_NAMING_CONFIG, NamingConfig
from .core.flattener import FlattenResult, SchemaFlattener, render_declarations
from .core.generator import (
    GeneratorError,
    ValidatorGenerator,
    replace_generated_comment,
    tidy_source,
)
from .core.locator import DEFAULT_ROOT_NAME
from .core.naming import default_type_name_transformer
from .core.overrides import (
    OverridePlan,
    apply_identifier_overrides,
    compute_schema_name_overrides,
    protected_type_names,
    transform_type_names,
)
from .core.rewriter import build_references, rewrite_references
from .core.syntax import SourceTree
from .logging_config import get_logger
from .utils import load_source

logger = get_logger(__name__)


class SchemaSelectionError(Exception):
    """Raised when no schema could be selected for flattening."""

    pass


@dataclass
class GenerationOptions:
    """Inputs of one generation run."""

    input_path: Path
    output_path: Path
    types_output_path: Optional[Path] = None
    flat_output_path: Optional[Path] = None
    schemas: List[str] = field(default_factory=list)
    naming_config: NamingConfig = DEFAULT_NAMING_CONFIG
    process_dependencies: bool = True
    root_name: str = DEFAULT_ROOT_NAME
    type_name_transformer: Callable[[str], str] = default_type_name_transformer

    def __post_init__(self):
        self.input_path = _absolute(self.input_path)
        self.output_path = _absolute(self.output_path)
        if self.types_output_path is not None:
            self.types_output_path = _absolute(self.types_output_path)
        if self.flat_output_path is not None:
            self.flat_output_path = _absolute(self.flat_output_path)


@dataclass
class CollectedTypes:
    """Flattened and rewritten declarations of every requested schema."""

    text: str
    result: FlattenResult
    schemas: List[str]


@dataclass
class GeneratedContent:
    """Everything a run produces, before it is written to disk."""

    flattened_types: str
    schemas_source: Optional[str] = None
    types_source: Optional[str] = None
    schemas: List[str] = field(default_factory=list)
    override_plan: OverridePlan = field(default_factory=OverridePlan)


def _absolute(path) -> Path:
    path = Path(path)
    return path if path.is_absolute() else Path.cwd() / path


def collect_types(
    source_text: str,
    schemas: Sequence[str] = (),
    naming_config: NamingConfig = DEFAULT_NAMING_CONFIG,
    process_dependencies: bool = True,
    root_name: str = DEFAULT_ROOT_NAME,
) -> CollectedTypes:
    """
    Flatten every requested schema and rewrite cross-references.

    Args:
        source_text: Generated database type file
        schemas: Schema keys to flatten; empty means every schema found
        naming_config: Name templates
        process_dependencies: Pull in enums of other schemas that are referenced
        root_name: Name of the root declaration

    Returns:
        CollectedTypes with the rendered declarations

    Raises:
        SchemaSelectionError: If no schema was requested and none was found
    """
    flattener = SchemaFlattener(SourceTree(source_text), naming_config, root_name)

    schemas = list(schemas)
    if not schemas:
        logger.warning("No schema specified, using all available schemas")
        schemas = list(flattener.location.schema_keys)
    if not schemas:
        raise SchemaSelectionError("No schemas specified and none found in the input")

    logger.info(f"Detected schemas: {', '.join(schemas)}")

    result = FlattenResult()
    for schema in schemas:
        result = flattener.flatten(schema, process_dependencies, result)

    text = rewrite_references(
        render_declarations(result),
        build_references(result.declarations),
        root_name,
    )
    logger.debug(f"Collected {len(result.declarations)} declarations")
    return CollectedTypes(text=text, result=result, schemas=schemas)


def get_import_path(from_file, to_file) -> str:
    """
    Module specifier importing ``to_file`` from ``from_file``.

    Relative, POSIX separators, no ``.ts`` extension, always starting with
    ``.``.
    """
    relative = os.path.relpath(Path(to_file), Path(from_file).parent)
    relative = Path(relative).as_posix()
    if relative.endswith(".ts"):
        relative = relative[: -len(".ts")]
    if not relative.startswith("."):
        relative = "./" + relative
    return relative


def generate_content(
    options: GenerationOptions,
    generator: Optional[ValidatorGenerator] = None,
    formatter: Callable[[str], str] = tidy_source,
    source_text: Optional[str] = None,
) -> GeneratedContent:
    """
    Run the whole pipeline without touching the output files.

    Args:
        options: Run options
        generator: Validator generator; None produces flattened types only
        formatter: Pretty printer applied to every produced source
        source_text: Input text (read from ``options.input_path`` when None)

    Returns:
        GeneratedContent

    Raises:
        SchemaSelectionError: If no schema could be selected
        GeneratorError: If the generator reports any error
    """
    if source_text is None:
        logger.info("Reading input file...")
        source_text = load_source(options.input_path)

    logger.info("Transforming types...")
    collected = collect_types(
        source_text,
        options.schemas,
        options.naming_config,
        options.process_dependencies,
        options.root_name,
    )
    content = GeneratedContent(
        flattened_types=formatter(collected.text),
        schemas=collected.schemas,
    )

    if generator is None:
        return content

    logger.info(f"Generating validators with {generator.name}...")
    import_target = options.flat_output_path or options.input_path
    schemas_import_path = (
        get_import_path(options.types_output_path, options.output_path)
        if options.types_output_path is not None
        else None
    )

    output = generator.generate(
        collected.text,
        get_import_path(options.output_path, import_target),
        schemas_import_path,
    )

    if output.errors:
        logger.error("Validator generation failed with the following errors:")
        for error in output.errors:
            logger.error(f"- {error}")
        raise GeneratorError("Validator generation failed", output.errors)

    plan = compute_schema_name_overrides(collected.result.mappings)
    content.override_plan = plan

    schemas_source = apply_identifier_overrides(output.schemas_source, plan.overrides)
    content.schemas_source = formatter(replace_generated_comment(schemas_source))

    if options.types_output_path is not None and output.inferred_types_source is not None:
        types_source = apply_identifier_overrides(
            output.inferred_types_source, plan.overrides
        )
        types_source = transform_type_names(
            types_source,
            options.type_name_transformer,
            protected_type_names(collected.result.declarations),
        )
        content.types_source = formatter(replace_generated_comment(types_source))

    return content


def write_outputs(options: GenerationOptions, content: GeneratedContent) -> List[Path]:
    """
    Write generated sources.

    Without validator output the flattened declarations go to the output path.

    Returns:
        Paths written, in order
    """
    written = []

    def write(path: Path, text: str):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        written.append(path)

    if content.schemas_source is None:
        logger.info("Writing flattened types file...")
        write(options.output_path, content.flattened_types)
        return written

    if options.flat_output_path is not None:
        logger.info("Writing flattened types file...")
        write(options.flat_output_path, content.flattened_types)

    logger.info("Writing schema file...")
    write(options.output_path, content.schemas_source)

    if options.types_output_path is not None and content.types_source is not None:
        logger.info("Writing types file...")
        write(options.types_output_path, content.types_source)

    return written


def run(
    options: GenerationOptions,
    generator: Optional[ValidatorGenerator] = None,
    formatter: Callable[[str], str] = tidy_source,
) -> GeneratedContent:
    """Generate and write every output file."""
    content = generate_content(options, generator, formatter)
    write_outputs(options, content)
    logger.info("Successfully generated output")
    return content
