"""
Validator and type name overrides.

The validator generator derives every validator variable from the flattened
type name alone (``PublicUsersRow`` -> ``publicUsersRowSchema``). When the
validator name templates ask for something else, the generated sources are
rewritten afterwards, identifier by identifier.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from ..logging_config import get_logger
from .flattener import FlatDeclaration, SchemaNameMapping
from .naming import has_non_identifier_chars, to_schema_variable_name
from .syntax import SourceTree

logger = get_logger(__name__)

_IDENTIFIER_BOUNDARY_BEFORE = r"(?<![A-Za-z0-9_$])"
_IDENTIFIER_BOUNDARY_AFTER = r"(?![A-Za-z0-9_$])"


@dataclass(frozen=True)
class NameConflict:
    """A rename that could not be applied because another one got there first."""

    default_name: str
    kept_name: str
    rejected_name: str
    type_name: str
    claimed_by: Optional[str] = None

    def describe(self) -> str:
        if self.claimed_by is not None:
            return (
                f"{self.rejected_name} is already the name of {self.claimed_by}; "
                f"keeping {self.default_name} for {self.type_name}"
            )
        return (
            f"{self.default_name} is already mapped to {self.kept_name}; "
            f"ignoring {self.rejected_name} for {self.type_name}"
        )


@dataclass
class OverridePlan:
    """Renames to apply to generated sources and the conflicts found."""

    overrides: Dict[str, str] = field(default_factory=dict)
    conflicts: List[NameConflict] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


def compute_schema_name_overrides(mappings: Iterable[SchemaNameMapping]) -> OverridePlan:
    """
    Work out which default validator names must be renamed.

    Args:
        mappings: Every mapping gathered across all flattened schemas

    Returns:
        OverridePlan with ``default -> configured`` renames. The first mapping
        for a default name wins; later different targets are conflicts. A
        target that would end up naming two validators is a conflict too, and
        that entity keeps its default name.
    """
    plan = OverridePlan()
    resolved: Dict[str, str] = {}
    type_names: Dict[str, str] = {}

    for mapping in mappings:
        default_name = to_schema_variable_name(mapping.type_name)
        target = mapping.schema_name

        existing = resolved.get(default_name)
        if existing is None:
            resolved[default_name] = target
            type_names[default_name] = mapping.type_name
        elif existing != target:
            _record_conflict(plan, NameConflict(default_name, existing, target, mapping.type_name))

    # A reverted rename can collide with a later one
    collision = _find_collision(resolved)
    while collision is not None:
        default_name, owner = collision
        _record_conflict(
            plan,
            NameConflict(
                default_name,
                default_name,
                resolved[default_name],
                type_names[default_name],
                owner,
            ),
        )
        resolved[default_name] = default_name
        collision = _find_collision(resolved)

    plan.overrides = {name: target for name, target in resolved.items() if name != target}
    logger.debug(
        "Computed %d validator name overrides (%d conflicts)",
        len(plan.overrides),
        len(plan.conflicts),
    )
    return plan


def _find_collision(resolved: Mapping[str, str]) -> Optional[Tuple[str, str]]:
    """First renamed validator whose target is already taken, with the taker."""
    owners = {name: name for name, target in resolved.items() if name == target}

    for name, target in resolved.items():
        if name == target:
            continue
        owner = owners.get(target)
        if owner is not None:
            return name, owner
        owners[target] = name

    return None


def _record_conflict(plan: OverridePlan, conflict: NameConflict) -> None:
    plan.conflicts.append(conflict)
    logger.warning("Naming conflict: %s", conflict.describe())


def apply_identifier_overrides(source: str, overrides: Mapping[str, str]) -> str:
    """
    Rename whole identifiers in ``source``.

    Keys are tried longest first so ``fooSchema`` never shadows
    ``fooBarSchema``.
    """
    if not overrides:
        return source

    keys = sorted(overrides, key=len, reverse=True)
    pattern = re.compile(
        _IDENTIFIER_BOUNDARY_BEFORE
        + "(?:"
        + "|".join(re.escape(key) for key in keys)
        + ")"
        + _IDENTIFIER_BOUNDARY_AFTER
    )
    return pattern.sub(lambda match: overrides[match.group(0)], source)


def protected_type_names(declarations: Iterable[FlatDeclaration]) -> Set[str]:
    """Type names whose entity name would not survive the type-name transformer."""
    return {d.formatted_name for d in declarations if has_non_identifier_chars(d.entity_name)}


def transform_type_names(
    source: str,
    transformer: Callable[[str], str],
    protected: Iterable[str] = (),
) -> str:
    """
    Rename every type alias declared in ``source``.

    Args:
        source: Inferred-types source text
        transformer: Name transformer (e.g. ``default_type_name_transformer``)
        protected: Names left exactly as they are

    Returns:
        Source with each ``type X =`` renamed to ``type transformer(X) =``
    """
    protected = set(protected)
    tree = SourceTree(source)
    replacements = {}

    for declaration in tree.iter_declarations():
        if declaration.type != "type_alias_declaration":
            continue
        name_node = declaration.child_by_field_name("name")
        if name_node is None:
            continue

        name = tree.text(name_node)
        if name in protected:
            logger.debug("Keeping type name %s untransformed", name)
            continue

        new_name = transformer(name)
        if new_name != name:
            replacements[(name_node.start_byte, name_node.end_byte)] = new_name

    return tree.render_source(replacements)
