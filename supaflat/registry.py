"""
Generator registry for validator generators.

Generators are looked up by registered name or alias, or imported on demand
from a ``package.module:ClassName`` path.
"""

import importlib
from typing import Any, Dict, List, Optional, Type

from .core.generator import ValidatorGenerator
from .logging_config import get_logger

logger = get_logger(__name__)


class RegistryError(Exception):
    """Exception raised for registry-related errors."""

    pass


class GeneratorRegistry:
    """Registry for managing available validator generators."""

    def __init__(self):
        self._generators: Dict[str, Type[ValidatorGenerator]] = {}
        self._aliases: Dict[str, str] = {}

    def register(
        self,
        name: str,
        generator_class: Type[ValidatorGenerator],
        aliases: Optional[List[str]] = None,
        replace: bool = False,
    ):
        """
        Register a generator class.

        Args:
            name: Primary generator name
            generator_class: Class implementing ValidatorGenerator
            aliases: Alternative names
            replace: Replace an existing registration instead of skipping it

        Raises:
            RegistryError: If the class is invalid or an alias conflicts
        """
        if not isinstance(generator_class, type) or not issubclass(
            generator_class, ValidatorGenerator
        ):
            raise RegistryError("Generator class must inherit from ValidatorGenerator")

        key = name.lower()
        if key in self._generators and not replace:
            return

        self._generators[key] = generator_class

        for alias in aliases or []:
            alias_key = alias.lower()
            if alias_key == key:
                continue
            if not replace:
                if alias_key in self._generators:
                    raise RegistryError(f"Alias '{alias}' conflicts with existing generator")
                if alias_key in self._aliases and self._aliases[alias_key] != key:
                    raise RegistryError(
                        f"Alias '{alias}' already points to '{self._aliases[alias_key]}'"
                    )
            self._aliases[alias_key] = key

    def unregister(self, name: str):
        """Remove a generator and its aliases."""
        key = name.lower()
        self._generators.pop(key, None)
        for alias in [a for a, target in self._aliases.items() if target == key]:
            del self._aliases[alias]

    def get_generator_class(self, name: str) -> Type[ValidatorGenerator]:
        """
        Resolve a generator class by name, alias or ``module:attr`` path.

        Raises:
            RegistryError: If nothing matches
        """
        if ":" in name:
            return _import_generator(name)

        key = name.lower()
        if key in self._generators:
            return self._generators[key]
        if key in self._aliases:
            return self._generators[self._aliases[key]]

        raise RegistryError(
            f"No generator registered as: {name}. "
            f"Available: {', '.join(self.list_generators())}"
        )

    def create_generator(
        self, name: str, config: Optional[Dict[str, Any]] = None
    ) -> ValidatorGenerator:
        """
        Instantiate a generator.

        Raises:
            RegistryError: If the generator cannot be resolved or constructed
        """
        generator_class = self.get_generator_class(name)
        try:
            return generator_class(config or {})
        except Exception as e:
            raise RegistryError(f"Failed to create {name} generator: {e}") from e

    def list_generators(self) -> List[str]:
        """Registered primary names."""
        return sorted(self._generators)

    def get_aliases(self, name: str) -> List[str]:
        key = name.lower()
        return sorted(alias for alias, target in self._aliases.items() if target == key)

    def is_supported(self, name: str) -> bool:
        key = name.lower()
        return key in self._generators or key in self._aliases

    def get_generator_info(self, name: str) -> Dict[str, Any]:
        """Name, class, module and aliases of a registered generator."""
        generator_class = self.get_generator_class(name)
        key = self._aliases.get(name.lower(), name.lower())
        return {
            "name": key,
            "class": generator_class.__name__,
            "module": generator_class.__module__,
            "aliases": self.get_aliases(key),
        }


def _import_generator(path: str) -> Type[ValidatorGenerator]:
    """Import ``package.module:ClassName``."""
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise RegistryError(f"Invalid generator path: {path}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise RegistryError(f"Cannot import generator module '{module_name}': {e}") from e

    generator_class = getattr(module, attr, None)
    if generator_class is None:
        raise RegistryError(f"Module '{module_name}' has no attribute '{attr}'")
    if not isinstance(generator_class, type) or not issubclass(
        generator_class, ValidatorGenerator
    ):
        raise RegistryError(f"{path} is not a ValidatorGenerator subclass")

    logger.debug("Imported generator %s", path)
    return generator_class


# Global registry instance - created once
_global_registry: Optional[GeneratorRegistry] = None


def get_registry() -> GeneratorRegistry:
    """Get the global generator registry, initializing if needed."""
    global _global_registry
    if _global_registry is None:
        _global_registry = GeneratorRegistry()
        _auto_register_generators(_global_registry)
    return _global_registry


def _auto_register_generators(registry: GeneratorRegistry):
    from .generators import ExternalCommandGenerator

    registry.register("command", ExternalCommandGenerator, aliases=["external", "cmd"])


def register_generator(
    name: str,
    generator_class: Type[ValidatorGenerator],
    aliases: Optional[List[str]] = None,
):
    """Register a generator in the global registry."""
    get_registry().register(name, generator_class, aliases)


def get_generator(name: str, config: Optional[Dict[str, Any]] = None) -> ValidatorGenerator:
    """Create a generator from the global registry."""
    return get_registry().create_generator(name, config)


def list_generators() -> List[str]:
    """List generators in the global registry."""
    return get_registry().list_generators()
