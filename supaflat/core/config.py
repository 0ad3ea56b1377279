"""
Configuration management for flattening and naming.

Handles the naming configuration (declaration and validator name templates),
loading it from JSON files or Python config modules, and merging command-line
overrides on top.
"""

import importlib.util
import json
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..logging_config import get_logger
from .naming import template_placeholders

logger = get_logger(__name__)


class ConfigError(Exception):
    """Exception raised for configuration-related errors."""

    pass


CONFIG_FILE_NAMES = (
    "supaflat.config.json",
    "supaflat.config.py",
    ".supaflatrc.json",
    ".supaflatrc",
)

# camelCase keys of the configuration file format -> dataclass fields
CAMEL_CASE_KEYS = {
    "tableOperationPattern": "table_operation_pattern",
    "tableSchemaPattern": "table_schema_pattern",
    "enumPattern": "enum_pattern",
    "enumSchemaPattern": "enum_schema_pattern",
    "compositeTypePattern": "composite_type_pattern",
    "compositeTypeSchemaPattern": "composite_type_schema_pattern",
    "functionArgsPattern": "function_args_pattern",
    "functionArgsSchemaPattern": "function_args_schema_pattern",
    "functionReturnsPattern": "function_returns_pattern",
    "functionReturnsSchemaPattern": "function_returns_schema_pattern",
    "capitalizeSchema": "capitalize_schema",
    "capitalizeNames": "capitalize_names",
    "separator": "separator",
}

TABLE_PLACEHOLDERS = frozenset({"schema", "table", "operation"})
NAME_PLACEHOLDERS = frozenset({"schema", "name"})
FUNCTION_PLACEHOLDERS = frozenset({"schema", "function"})


@dataclass(frozen=True)
class NamingConfig:
    """Name templates for flattened declarations and their validators."""

    # Declaration names
    table_operation_pattern: str = "{schema}{table}{operation}"
    enum_pattern: str = "{schema}{name}"
    composite_type_pattern: str = "{schema}{name}"
    function_args_pattern: str = "{schema}{function}Args"
    function_returns_pattern: str = "{schema}{function}Returns"

    # Validator variable names
    table_schema_pattern: str = "{schema}{table}{operation}"
    enum_schema_pattern: str = "{schema}{name}"
    composite_type_schema_pattern: str = "{schema}{name}"
    function_args_schema_pattern: str = "{schema}{function}Args"
    function_returns_schema_pattern: str = "{schema}{function}Returns"

    # Formatting
    capitalize_schema: bool = True
    capitalize_names: bool = True
    separator: str = ""

    def __post_init__(self):
        for config_field in fields(self):
            value = getattr(self, config_field.name)
            expected = bool if config_field.type in (bool, "bool") else str
            if not isinstance(value, expected):
                raise ConfigError(
                    f"Invalid value for {config_field.name}: expected "
                    f"{expected.__name__}, got {type(value).__name__}"
                )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NamingConfig":
        """
        Build a configuration from a dict of overrides.

        Accepts dataclass field names as well as the camelCase keys used in
        configuration files. Unset fields keep their defaults.
        """
        return cls(**normalize_keys(data))

    def template_families(self) -> Dict[str, frozenset]:
        """Map every template field to the placeholders it may use."""
        return {
            "table_operation_pattern": TABLE_PLACEHOLDERS,
            "table_schema_pattern": TABLE_PLACEHOLDERS,
            "enum_pattern": NAME_PLACEHOLDERS,
            "enum_schema_pattern": NAME_PLACEHOLDERS,
            "composite_type_pattern": NAME_PLACEHOLDERS,
            "composite_type_schema_pattern": NAME_PLACEHOLDERS,
            "function_args_pattern": FUNCTION_PLACEHOLDERS,
            "function_args_schema_pattern": FUNCTION_PLACEHOLDERS,
            "function_returns_pattern": FUNCTION_PLACEHOLDERS,
            "function_returns_schema_pattern": FUNCTION_PLACEHOLDERS,
        }

    def validate(self) -> List[str]:
        """
        Validate templates.

        Returns:
            List of validation warnings (empty templates, unknown placeholders)
        """
        warnings = []

        for name, allowed in self.template_families().items():
            template = getattr(self, name)
            if not template.strip():
                warnings.append(f"Empty template: {name}")
                continue

            unknown = [p for p in template_placeholders(template) if p not in allowed]
            if unknown:
                warnings.append(
                    f"Unknown placeholder(s) in {name}: "
                    + ", ".join("{" + p + "}" for p in unknown)
                )

        return warnings


DEFAULT_NAMING_CONFIG = NamingConfig()


@dataclass(frozen=True)
class SupaflatConfig:
    """Complete configuration file contents."""

    naming_config: NamingConfig = field(default_factory=NamingConfig)
    source_path: Optional[Path] = None


def normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """Translate camelCase keys and drop unknown ones."""
    known_fields = {f.name for f in fields(NamingConfig)}
    normalized = {}

    for key, value in data.items():
        field_name = CAMEL_CASE_KEYS.get(key, key)
        if field_name not in known_fields:
            logger.debug("Ignoring unknown naming option: %s", key)
            continue
        normalized[field_name] = value

    return normalized


def merge_naming_config(
    base: NamingConfig, overrides: Optional[Dict[str, Any]] = None
) -> NamingConfig:
    """Layer overrides (e.g. from the command line) over a base config."""
    if not overrides:
        return base
    return replace(base, **normalize_keys(overrides))


def load_config(
    cwd: Optional[Union[str, Path]] = None,
    config_path: Optional[Union[str, Path]] = None,
) -> SupaflatConfig:
    """
    Load configuration from an explicit file or by discovery.

    Args:
        cwd: Directory searched for the default config file names
        config_path: Explicit config file (relative paths resolve against cwd)

    Returns:
        Loaded configuration, or defaults when no file is found

    Raises:
        ConfigError: If the explicit file is missing or any file is invalid
    """
    base_dir = Path(cwd) if cwd else Path.cwd()

    if config_path:
        path = Path(config_path)
        if not path.is_absolute():
            path = base_dir / path
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")
        return _load_config_from_path(path)

    for file_name in CONFIG_FILE_NAMES:
        candidate = base_dir / file_name
        if candidate.exists():
            return _load_config_from_path(candidate)

    logger.debug("No config file found, using defaults")
    return SupaflatConfig()


def _load_config_from_path(path: Path) -> SupaflatConfig:
    """Load a JSON or Python configuration file."""
    logger.debug("Loading config file: %s", path)

    if path.suffix == ".py":
        raw_config = _load_python_config(path)
    else:
        raw_config = _load_json_config(path)

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Configuration must be an object: {path}")

    naming_data = raw_config.get("namingConfig", raw_config.get("naming_config", {}))
    if not isinstance(naming_data, dict):
        raise ConfigError(f"namingConfig must be an object: {path}")

    naming_config = NamingConfig.from_dict(naming_data)
    for warning in naming_config.validate():
        logger.warning("%s (%s)", warning, path.name)

    return SupaflatConfig(naming_config=naming_config, source_path=path)


def _load_json_config(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in configuration file {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to load configuration file {path}: {e}") from e


def _load_python_config(path: Path) -> Any:
    """Import a config module and read its ``config`` attribute."""
    module_name = "_supaflat_config_" + path.stem.replace(".", "_")
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ConfigError(f"Cannot import configuration module: {path}")

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise ConfigError(f"Failed to load configuration module {path}: {e}") from e

    config = getattr(module, "config", None)
    if config is None:
        raise ConfigError(f"Configuration module {path} does not define 'config'")

    return config() if callable(config) else config
