"""Generation pipeline tests."""

from __future__ import annotations

import re
from pathlib import Path

import pytest
from supaflat.core.config import NamingConfig
from supaflat.core.generator import GeneratorError, ValidatorGenerator, ValidatorOutput
from supaflat.core.naming import to_schema_variable_name
from supaflat.pipeline import (
    GenerationOptions,
    SchemaSelectionError,
    collect_types,
    generate_content,
    get_import_path,
    run,
)

DECLARED_TYPE = re.compile(r"^export type (\w+) =", re.MULTILINE)


class RecordingGenerator(ValidatorGenerator):
    """Emits one validator per declared type, named the default way."""

    def __init__(self, errors=None):
        super().__init__()
        self.errors = errors or []
        self.calls = []

    @property
    def name(self) -> str:
        return "recording"

    def generate(self, source_text, import_path, schemas_import_path=None) -> ValidatorOutput:
        self.calls.append((source_text, import_path, schemas_import_path))
        if self.errors:
            return ValidatorOutput(schemas_source="", errors=list(self.errors))

        names = [name for name in DECLARED_TYPE.findall(source_text) if name != "Json"]
        schemas = ["// Generated by some tool", 'import { z } from "zod";', ""]
        schemas += [f"export const {to_schema_variable_name(n)} = z.any();" for n in names]
        inferred = ["// Generated by some tool", f'import * as s from "{schemas_import_path}";']
        inferred += [
            f"export type {n} = z.infer<typeof s.{to_schema_variable_name(n)}>;" for n in names
        ]
        return ValidatorOutput("\n".join(schemas), "\n".join(inferred))


def _options(tmp_path: Path, example_file: Path, **overrides) -> GenerationOptions:
    return GenerationOptions(
        input_path=example_file,
        output_path=tmp_path / "schemas.ts",
        **overrides,
    )


def test_auto_discovery_processes_every_schema(example_source: str) -> None:
    collected = collect_types(example_source)

    assert collected.schemas == ["public", "schema_b"]
    assert "export type PublicUsersRow =" in collected.text
    assert "export type SchemaBUsersRow =" in collected.text


def test_auto_discovery_handles_public_and_auth(merged_source: str) -> None:
    collected = collect_types(merged_source)

    assert collected.schemas == ["public", "auth"]
    assert "export type AuthSessionsRow = { id: string };" in collected.text


def test_explicit_schema_selection(example_source: str) -> None:
    collected = collect_types(example_source, ["schema_b"], process_dependencies=False)

    assert collected.schemas == ["schema_b"]
    assert "PublicUsersRow" not in collected.text


def test_empty_discovery_is_fatal() -> None:
    with pytest.raises(SchemaSelectionError):
        collect_types("export type Something = string;")


def test_missing_requested_schema_yields_empty_text(example_source: str) -> None:
    collected = collect_types(example_source, ["nope"])

    assert collected.result.declarations == ()


def test_collected_text_has_no_nested_lookups(example_source: str) -> None:
    collected = collect_types(example_source)

    assert "Database[" not in collected.text


@pytest.mark.parametrize(
    ("from_file", "to_file", "expected"),
    [
        ("/a/schemas.ts", "/a/types.ts", "./types"),
        ("/a/b/schemas.ts", "/a/types.ts", "../types"),
        ("/a/schemas.ts", "/a/gen/types.ts", "./gen/types"),
        ("/a/schemas.ts", "/a/types.d", "./types.d"),
    ],
)
def test_import_paths(from_file: str, to_file: str, expected: str) -> None:
    assert get_import_path(from_file, to_file) == expected


def test_generation_without_a_generator_returns_flat_types(
    tmp_path: Path, example_file: Path
) -> None:
    content = generate_content(_options(tmp_path, example_file))

    assert content.schemas_source is None
    assert content.flattened_types.endswith(";\n")
    assert "export type PublicUserStatus = 'ONLINE' | 'OFFLINE';" in content.flattened_types


def test_generator_receives_flat_types_and_import_path(
    tmp_path: Path, example_file: Path
) -> None:
    generator = RecordingGenerator()

    generate_content(_options(tmp_path, example_file), generator)

    source_text, import_path, schemas_import_path = generator.calls[0]
    assert "export type PublicUsersRow =" in source_text
    assert import_path == "./types"
    assert schemas_import_path is None


def test_banner_and_formatting_are_applied(tmp_path: Path, example_file: Path) -> None:
    content = generate_content(_options(tmp_path, example_file), RecordingGenerator())

    assert content.schemas_source.startswith("// Generated by supaflat\nimport")
    assert content.schemas_source.endswith("\n")
    assert "export const publicUsersRowSchema = z.any();" in content.schemas_source


def test_generator_errors_are_aggregated(tmp_path: Path, example_file: Path) -> None:
    generator = RecordingGenerator(errors=["bad type A", "bad type B"])

    with pytest.raises(GeneratorError) as excinfo:
        generate_content(_options(tmp_path, example_file), generator)

    assert excinfo.value.errors == ["bad type A", "bad type B"]
    assert "bad type B" in str(excinfo.value)


def test_configured_validator_names_are_applied(tmp_path: Path, example_file: Path) -> None:
    config = NamingConfig.from_dict({"tableSchemaPattern": "{schema}{table}{operation}Validator"})
    options = _options(
        tmp_path,
        example_file,
        types_output_path=tmp_path / "types.generated.ts",
        naming_config=config,
    )

    content = generate_content(options, RecordingGenerator())

    assert "export const publicUsersRowValidatorSchema" in content.schemas_source
    assert "publicUsersRowSchema" not in content.schemas_source
    assert "typeof s.publicUsersRowValidatorSchema" in content.types_source


def test_colliding_validator_names_keep_the_first(tmp_path: Path, example_file: Path) -> None:
    config = NamingConfig.from_dict({"tableSchemaPattern": "{table}{operation}"})

    content = generate_content(
        _options(tmp_path, example_file, naming_config=config), RecordingGenerator()
    )

    assert content.override_plan.overrides["publicUsersRowSchema"] == "usersRowSchema"
    assert "schemaBUsersRowSchema" not in content.override_plan.overrides
    assert content.override_plan.has_conflicts
    assert "export const usersRowSchema" in content.schemas_source
    assert "export const schemaBUsersRowSchema" in content.schemas_source


def test_rename_onto_another_default_name_is_not_applied(tmp_path: Path) -> None:
    source = tmp_path / "types.ts"
    source.write_text(
        """export type Database = {
  public: {
    Tables: {
      users: {
        Row: { id: number };
        Insert: { id?: number };
        Update: { id?: number };
      };
    };
    Enums: {
      users: 'a' | 'b';
    };
  };
};
""",
        encoding="utf-8",
    )
    config = NamingConfig.from_dict({"tableSchemaPattern": "{schema}{table}"})
    options = GenerationOptions(
        input_path=source, output_path=tmp_path / "schemas.ts", naming_config=config
    )

    content = generate_content(options, RecordingGenerator())

    declared = re.findall(r"^export const (\w+)", content.schemas_source, re.MULTILINE)
    assert content.override_plan.overrides == {}
    assert len(content.override_plan.conflicts) == 3
    assert sorted(declared) == sorted(set(declared))
    assert "publicUsersSchema" in declared


def test_inferred_types_get_type_names_and_banner(tmp_path: Path, example_file: Path) -> None:
    options = _options(tmp_path, example_file, types_output_path=tmp_path / "out" / "types.ts")
    generator = RecordingGenerator()

    content = generate_content(options, generator)

    assert generator.calls[0][2] == "../schemas"
    assert content.types_source.startswith("// Generated by supaflat\nimport")
    assert "export type PublicUsersRow = z.infer<typeof s.publicUsersRowSchema>;" in (
        content.types_source
    )


def test_run_writes_every_output(tmp_path: Path, example_file: Path) -> None:
    options = _options(
        tmp_path,
        example_file,
        types_output_path=tmp_path / "inferred.ts",
        flat_output_path=tmp_path / "flat" / "types.ts",
    )

    run(options, RecordingGenerator())

    assert (tmp_path / "schemas.ts").read_text(encoding="utf-8").startswith(
        "// Generated by supaflat"
    )
    assert "export type PublicUsersRow" in (tmp_path / "inferred.ts").read_text(encoding="utf-8")
    assert "export type PublicUsersRow =" in (tmp_path / "flat" / "types.ts").read_text(
        encoding="utf-8"
    )


def test_run_without_generator_writes_flat_types(tmp_path: Path, example_file: Path) -> None:
    run(_options(tmp_path, example_file))

    written = (tmp_path / "schemas.ts").read_text(encoding="utf-8")
    assert written.startswith("export type Json =")
