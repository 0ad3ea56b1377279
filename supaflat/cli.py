"""
Command-line interface for supaflat.

Flattens a generated database type file and, when a validator generator is
configured, writes the validator file and the inferred types file.
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from . import __version__
from .core.config import ConfigError, load_config, merge_naming_config
from .core.generator import GeneratorError, ValidatorGenerator
from .core.locator import DEFAULT_ROOT_NAME, get_all_schemas
from .core.templates import TemplateError
from .logging_config import configure_logging, get_logger
from .pipeline import GenerationOptions, SchemaSelectionError, run
from .registry import RegistryError, get_generator
from .utils import SourceLoaderError, load_source

logger = get_logger(__name__)

console = Console()

PATTERN_OPTIONS = (
    ("--table-operation-pattern", "table_operation_pattern", "table operation types"),
    ("--table-schema-pattern", "table_schema_pattern", "table operation validators"),
    ("--enum-pattern", "enum_pattern", "enum types"),
    ("--enum-schema-pattern", "enum_schema_pattern", "enum validators"),
    ("--composite-type-pattern", "composite_type_pattern", "composite types"),
    (
        "--composite-type-schema-pattern",
        "composite_type_schema_pattern",
        "composite type validators",
    ),
    ("--function-args-pattern", "function_args_pattern", "function argument types"),
    (
        "--function-args-schema-pattern",
        "function_args_schema_pattern",
        "function argument validators",
    ),
    ("--function-returns-pattern", "function_returns_pattern", "function return types"),
    (
        "--function-returns-schema-pattern",
        "function_returns_schema_pattern",
        "function return validators",
    ),
)


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="supaflat",
        description="Flatten generated Supabase database types into standalone declarations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  supaflat -i types.ts -o flat.ts
  supaflat -i types.ts -o schemas.ts -t schema-types.ts --generator-command "npx ts-to-zod {input} {output}"
  supaflat -i types.ts --list-schemas
        """.strip(),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    io_group = parser.add_argument_group("input and output")
    io_group.add_argument("-i", "--input", required=True, help="Generated database types file")
    io_group.add_argument("-o", "--output", help="Output file for validators (or flattened types)")
    io_group.add_argument("-t", "--types-output", help="Output file for inferred types")
    io_group.add_argument(
        "--flat-output", help="Also write the flattened type declarations to this file"
    )
    io_group.add_argument(
        "-s",
        "--schema",
        default="",
        help="Schemas to flatten, comma-separated (default: all)",
    )
    io_group.add_argument("--config", metavar="FILE", help="Configuration file path")
    io_group.add_argument(
        "--root-name",
        default=DEFAULT_ROOT_NAME,
        help=f"Name of the root declaration (default: {DEFAULT_ROOT_NAME})",
    )
    io_group.add_argument(
        "--no-dependencies",
        action="store_true",
        help="Don't pull in enums referenced from other schemas",
    )

    generator_group = parser.add_argument_group("validator generation")
    generator_group.add_argument(
        "--generator",
        metavar="NAME",
        help="Registered generator name or module:Class path",
    )
    generator_group.add_argument(
        "--generator-command",
        metavar="COMMAND",
        help="External generator command ({input}, {output}, {inferred} placeholders)",
    )

    naming_group = parser.add_argument_group("naming")
    for option, dest, description in PATTERN_OPTIONS:
        naming_group.add_argument(
            option, dest=dest, metavar="TEMPLATE", help=f"Name template for {description}"
        )
    naming_group.add_argument(
        "--no-capitalize-schema",
        action="store_true",
        help="Keep schema names as written in templates",
    )
    naming_group.add_argument(
        "--no-capitalize-names",
        action="store_true",
        help="Keep entity names as written in templates",
    )
    naming_group.add_argument("--separator", help="Separator between name parts")

    info_group = parser.add_argument_group("information")
    info_group.add_argument(
        "--list-schemas", action="store_true", help="List schemas in the input and exit"
    )
    info_group.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = create_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        if args.list_schemas:
            return _list_schemas(args)
        return _generate(args)

    except (
        CLIError,
        ConfigError,
        GeneratorError,
        RegistryError,
        SchemaSelectionError,
        SourceLoaderError,
        TemplateError,
        FileNotFoundError,
    ) as e:
        console.print(f"[red]✗ Error:[/red] {e}")
        return 1
    except Exception as e:
        logger.debug("Unexpected error", exc_info=True)
        console.print(f"[red]✗ Unexpected error:[/red] {e}")
        return 1


def _list_schemas(args: argparse.Namespace) -> int:
    schemas = get_all_schemas(load_source(args.input), args.root_name)

    if not schemas:
        console.print(f"[yellow]⚠️ No schemas found in {args.root_name}[/yellow]")
        return 0

    table = Table(title="📋 Schemas", box=box.ROUNDED, title_style="bold cyan")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Schema", style="bold green")
    for index, schema in enumerate(schemas, 1):
        table.add_row(str(index), schema)

    console.print(table)
    return 0


def _generate(args: argparse.Namespace) -> int:
    if not args.output:
        raise CLIError("--output is required")

    config = load_config(config_path=args.config)
    overrides = _naming_overrides(args)
    naming_config = merge_naming_config(config.naming_config, overrides)
    if overrides:
        for warning in naming_config.validate():
            logger.warning(warning)

    options = GenerationOptions(
        input_path=Path(args.input),
        output_path=Path(args.output),
        types_output_path=Path(args.types_output) if args.types_output else None,
        flat_output_path=Path(args.flat_output) if args.flat_output else None,
        schemas=_split_schemas(args.schema),
        naming_config=naming_config,
        process_dependencies=not args.no_dependencies,
        root_name=args.root_name,
    )

    content = run(options, _build_generator(args))

    for conflict in content.override_plan.conflicts:
        console.print(f"[yellow]⚠️ {conflict.describe()}[/yellow]")

    console.print(
        f"[green]✓[/green] Flattened {len(content.schemas)} schema(s): "
        f"{', '.join(content.schemas)} → {options.output_path}"
    )
    return 0


def _split_schemas(value: str) -> List[str]:
    return [schema.strip() for schema in value.split(",") if schema.strip()]


def _naming_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Naming fields given on the command line."""
    overrides: Dict[str, Any] = {}

    for _, dest, _ in PATTERN_OPTIONS:
        value = getattr(args, dest)
        if value is not None:
            overrides[dest] = value

    if args.no_capitalize_schema:
        overrides["capitalize_schema"] = False
    if args.no_capitalize_names:
        overrides["capitalize_names"] = False
    if args.separator is not None:
        overrides["separator"] = args.separator

    return overrides


def _build_generator(args: argparse.Namespace) -> Optional[ValidatorGenerator]:
    if args.generator_command:
        return get_generator(args.generator or "command", {"command": args.generator_command})
    if args.generator:
        return get_generator(args.generator)
    return None


if __name__ == "__main__":
    sys.exit(main())
