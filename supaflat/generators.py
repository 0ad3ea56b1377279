"""
Validator generators shipped with supaflat.

``ExternalCommandGenerator`` runs any command-line validator generator (for
example ``npx ts-to-zod {input} {output}``) over temporary files.
"""

import shlex
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from .core.generator import GeneratorError, ValidatorGenerator, ValidatorOutput
from .logging_config import get_logger

logger = get_logger(__name__)

INPUT_FILE = "input.ts"
OUTPUT_FILE = "output.ts"
INFERRED_FILE = "inferred.ts"

DEFAULT_TIMEOUT = 300


class ExternalCommandGenerator(ValidatorGenerator):
    """Delegate validator generation to an external command."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Args:
            config: ``command`` (required) is a command template with
                ``{input}``, ``{output}``, ``{inferred}``, ``{import_path}`` and
                ``{schemas_import_path}`` placeholders; ``timeout`` in seconds
                and ``cwd`` are optional.
        """
        super().__init__(config)
        command = self.config.get("command")
        if not command:
            raise GeneratorError("ExternalCommandGenerator requires a 'command'")
        self.command = command
        self.timeout = self.config.get("timeout", DEFAULT_TIMEOUT)
        self.cwd = self.config.get("cwd")

    @property
    def name(self) -> str:
        return "command"

    def build_command(self, placeholders: Dict[str, str]) -> List[str]:
        """Split the template first so substituted paths stay single arguments."""
        try:
            return [part.format(**placeholders) for part in shlex.split(self.command)]
        except (KeyError, IndexError, ValueError) as e:
            raise GeneratorError(f"Invalid generator command template: {e}") from e

    def generate(
        self,
        source_text: str,
        import_path: str,
        schemas_import_path: Optional[str] = None,
    ) -> ValidatorOutput:
        with tempfile.TemporaryDirectory(prefix="supaflat-") as work_dir:
            work = Path(work_dir)
            input_file = work / INPUT_FILE
            output_file = work / OUTPUT_FILE
            inferred_file = work / INFERRED_FILE
            input_file.write_text(source_text, encoding="utf-8")

            command = self.build_command(
                {
                    "input": str(input_file),
                    "output": str(output_file),
                    "inferred": str(inferred_file),
                    "import_path": import_path,
                    "schemas_import_path": schemas_import_path or "",
                }
            )
            logger.debug("Running generator command: %s", " ".join(command))

            try:
                completed = subprocess.run(
                    command,
                    capture_output=True,
                    text=True,
                    timeout=self.timeout,
                    cwd=self.cwd,
                )
            except FileNotFoundError as e:
                raise GeneratorError(f"Generator command not found: {command[0]}") from e
            except subprocess.TimeoutExpired as e:
                raise GeneratorError(
                    f"Generator command timed out after {self.timeout}s"
                ) from e

            if completed.returncode != 0:
                errors = _error_lines(completed.stderr) or [
                    f"Generator command exited with status {completed.returncode}"
                ]
                return ValidatorOutput(schemas_source="", errors=errors)

            if not output_file.exists():
                return ValidatorOutput(
                    schemas_source="",
                    errors=[f"Generator command did not write {OUTPUT_FILE}"],
                )

            schemas_source = _relink(
                output_file.read_text(encoding="utf-8"), INPUT_FILE, import_path
            )

            inferred_source = None
            if schemas_import_path is not None and inferred_file.exists():
                inferred_source = _relink(
                    inferred_file.read_text(encoding="utf-8"),
                    OUTPUT_FILE,
                    schemas_import_path,
                )

        return ValidatorOutput(
            schemas_source=schemas_source,
            inferred_types_source=inferred_source,
        )


def _error_lines(stderr: str) -> List[str]:
    return [line.strip() for line in stderr.splitlines() if line.strip()]


def _relink(source: str, file_name: str, import_path: str) -> str:
    """Point imports of a temporary file at its real location."""
    stem = Path(file_name).stem
    for quote in ("'", '"'):
        source = source.replace(f"{quote}./{stem}{quote}", f"{quote}{import_path}{quote}")
    return source
