"""
Validator generator interface.

supaflat does not build validators itself. It hands the flattened type
declarations to a ``ValidatorGenerator`` and post-processes what comes back.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

GENERATED_BANNER = "// Generated by supaflat\n"

_IMPORT_LINE = re.compile(r"^import\b", re.MULTILINE)


class GeneratorError(Exception):
    """Raised when the validator generator reports errors."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = list(errors or [])

    def __str__(self) -> str:
        message = super().__str__()
        if not self.errors:
            return message
        return message + "\n" + "\n".join(f"  - {error}" for error in self.errors)


@dataclass
class ValidatorOutput:
    """What a validator generator produced for one input file."""

    schemas_source: str
    inferred_types_source: Optional[str] = None
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


class ValidatorGenerator(ABC):
    """Abstract base class for validator generators."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}

    @property
    @abstractmethod
    def name(self) -> str:
        """Short name of the generator (e.g. 'command')."""
        pass

    @abstractmethod
    def generate(
        self,
        source_text: str,
        import_path: str,
        schemas_import_path: Optional[str] = None,
    ) -> ValidatorOutput:
        """
        Produce validators for every type declared in ``source_text``.

        Args:
            source_text: Flattened type declarations
            import_path: Import path from the validator file to the types file
            schemas_import_path: Import path from the inferred-types file back
                to the validator file, when one is written

        Returns:
            ValidatorOutput; ``errors`` is non-empty on failure
        """
        pass


def tidy_source(code: str) -> str:
    """
    Default pretty printer for generated sources.

    Strips trailing whitespace, allows at most two consecutive blank lines
    and ends the text with exactly one newline.
    """
    lines = code.split("\n")
    formatted_lines = []
    blank_count = 0

    for line in lines:
        stripped = line.rstrip()
        if not stripped:
            blank_count += 1
            if blank_count <= 2:
                formatted_lines.append("")
        else:
            blank_count = 0
            formatted_lines.append(stripped)

    return "\n".join(formatted_lines).strip("\n") + "\n"


def replace_generated_comment(source: str, banner: str = GENERATED_BANNER) -> str:
    """
    Replace everything before the first ``import`` line with ``banner``.

    Sources without an import line are returned unchanged.
    """
    match = _IMPORT_LINE.search(source)
    if match is None:
        return source
    return banner + source[match.start() :]
