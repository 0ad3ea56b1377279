"""
Cross-reference rewriting for flattened declarations.

Bodies copied out of the nested root declaration still refer to each other
through lookups such as ``Database['public']['Enums']['user_status']``. Once
the declarations stand alone, every such lookup (and every spelling older
naming schemes produced for the same entity) is replaced with the final
flattened name.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..logging_config import get_logger
from .flattener import FlatDeclaration, nested_path
from .locator import DEFAULT_ROOT_NAME
from .naming import capitalize_words

logger = get_logger(__name__)

IDENTIFIER_CHARS = "A-Za-z0-9_$"

LEGACY_CATEGORIES = ("Enums", "CompositeTypes")

STRING_LITERAL = r"'(?:[^'\\\n]|\\.)*'|\"(?:[^\"\\\n]|\\.)*\""


@dataclass(frozen=True)
class NameReference:
    """A nested lookup path and the flattened name that replaces it."""

    schema: str
    category: str
    name: str
    formatted_name: str
    member: Optional[str] = None

    @property
    def segments(self) -> Tuple[str, ...]:
        if self.member is None:
            return (self.schema, self.category, self.name)
        return (self.schema, self.category, self.name, self.member)


def build_references(declarations: Iterable[FlatDeclaration]) -> List[NameReference]:
    """One reference per distinct lookup path, first declaration wins."""
    references = []
    seen = set()

    for declaration in declarations:
        reference = NameReference(
            schema=declaration.schema_key,
            category=declaration.source_category,
            name=declaration.entity_name,
            formatted_name=declaration.formatted_name,
            member=declaration.member,
        )
        if reference.segments in seen:
            continue
        seen.add(reference.segments)
        references.append(reference)

    return references


def legacy_spellings(reference: NameReference) -> List[str]:
    """Names earlier naming schemes produced for an enum or composite type."""
    if reference.member is not None or reference.category not in LEGACY_CATEGORIES:
        return []

    schema, category, name = reference.schema, reference.category, reference.name
    capitalized_schema = "".join(
        part[:1].upper() + part[1:].lower() for part in schema.split("_")
    )

    return [
        f"{schema}{category}{name}Schema",
        f"{schema}{name}Schema",
        f"{schema.lower()}{name}Schema",
        f"{capitalized_schema}{name}Schema",
        f"{schema.replace('_', '', 1)}{name}Schema",
        f"{schema.lower().replace('_', '', 1)}{name}Schema",
        f"{capitalized_schema}{capitalize_words(name)}",
    ]


class ReferenceRewriter:
    """Replaces nested lookups and legacy spellings with flattened names."""

    def __init__(
        self,
        references: Sequence[NameReference],
        root_name: str = DEFAULT_ROOT_NAME,
        include_legacy: bool = True,
    ):
        """
        Args:
            references: Lookup paths gathered from every flattened schema
            root_name: Name of the root declaration used in lookups
            include_legacy: Also replace legacy spellings
        """
        self.root_name = root_name
        self._replacements = self._build_replacements(references, include_legacy)
        self._pattern = self._compile(self._replacements)

    def _build_replacements(
        self, references: Sequence[NameReference], include_legacy: bool
    ) -> Dict[str, str]:
        formatted_names = {reference.formatted_name for reference in references}
        replacements: Dict[str, str] = {}

        for reference in references:
            for quote in ("'", '"'):
                pattern = nested_path(self.root_name, reference.segments, quote)
                replacements.setdefault(pattern, reference.formatted_name)

            if not include_legacy:
                continue

            for spelling in legacy_spellings(reference):
                # A spelling that is a real name in this run must stay intact
                if spelling in formatted_names:
                    continue
                replacements.setdefault(spelling, reference.formatted_name)

        return replacements

    @staticmethod
    def _compile(replacements: Dict[str, str]) -> Optional["re.Pattern[str]"]:
        if not replacements:
            return None

        keys = sorted(replacements, key=len, reverse=True)
        alternatives = "|".join(re.escape(key) for key in keys)
        return re.compile(
            rf"(?<![{IDENTIFIER_CHARS}])(?P<name>{alternatives})(?![{IDENTIFIER_CHARS}])"
            rf"|(?P<literal>{STRING_LITERAL})"
        )

    def _substitute(self, match: "re.Match[str]") -> str:
        name = match.group("name")
        if name is None:
            return match.group(0)
        return self._replacements[name]

    def rewrite_line(self, line: str) -> str:
        """Replace known names in one line, leaving string literals as they are."""
        if self._pattern is None:
            return line
        return self._pattern.sub(self._substitute, line)

    def rewrite(self, text: str) -> str:
        """Rewrite every line; unknown lookups pass through untouched."""
        return "\n".join(self.rewrite_line(line) for line in text.split("\n"))


def rewrite_references(
    text: str,
    references: Sequence[NameReference],
    root_name: str = DEFAULT_ROOT_NAME,
    include_legacy: bool = True,
) -> str:
    """Convenience wrapper around ``ReferenceRewriter``."""
    rewriter = ReferenceRewriter(references, root_name, include_legacy)
    rewritten = rewriter.rewrite(text)
    logger.debug("Rewrote cross-references using %d lookup paths", len(references))
    return rewritten
