"""
Template engine wrapper for rendering flattened type declarations.

Provides a small Jinja2 environment with in-memory templates for the
declaration lines and the assembled types file.
"""

from typing import Any, Dict, List, Optional

from jinja2 import DictLoader, Environment, StrictUndefined, TemplateError as JinjaError


class TemplateError(Exception):
    """Exception raised for template-related errors."""

    pass


DECLARATION_TEMPLATE = "export type {{ name }} = {{ body }};"

# Non-empty sections joined by one blank line, lines within a section by "\n"
TYPES_FILE_TEMPLATE = """
{%- for section in sections if section -%}
{%- if not loop.first -%}{{ "\\n\\n" }}{%- endif -%}
{{ section | join("\\n") }}
{%- endfor -%}
"""

BUILTIN_TEMPLATES = {
    "declaration": DECLARATION_TEMPLATE,
    "types_file": TYPES_FILE_TEMPLATE,
}


class TemplateEngine:
    """Jinja2 environment loaded with the built-in templates."""

    def __init__(self, templates: Optional[Dict[str, str]] = None):
        """
        Initialize template engine.

        Args:
            templates: Extra or replacement templates keyed by name
        """
        mapping = dict(BUILTIN_TEMPLATES)
        if templates:
            mapping.update(templates)

        # Output is TypeScript, never markup
        self._env = Environment(
            loader=DictLoader(mapping),
            autoescape=False,
            undefined=StrictUndefined,
        )

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a named template with the given context.

        Raises:
            TemplateError: If the template is missing or fails to render
        """
        try:
            template = self._env.get_template(template_name)
            return template.render(**context)
        except JinjaError as e:
            raise TemplateError(f"Failed to render template {template_name}: {e}") from e

    def template_exists(self, template_name: str) -> bool:
        return template_name in self._env.loader.list_templates()


_default_engine: Optional[TemplateEngine] = None


def get_default_template_engine() -> TemplateEngine:
    """Get the shared template engine instance."""
    global _default_engine
    if _default_engine is None:
        _default_engine = TemplateEngine()
    return _default_engine


def render_declaration(name: str, body: str) -> str:
    """Render a single ``export type`` statement."""
    return get_default_template_engine().render_template(
        "declaration", {"name": name, "body": body}
    )


def render_types_file(sections: List[List[str]]) -> str:
    """Join rendered blocks, one blank line between non-empty sections."""
    return get_default_template_engine().render_template(
        "types_file", {"sections": sections}
    )
