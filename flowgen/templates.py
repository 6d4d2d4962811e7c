# File: flowgen/templates.py
"""
Flowgen - Template Engine
==========================
Jinja2 rendering for generated classes plus the bundled default stubs.

Two template styles are supported with the same context:

1. **Pre-joined blocks**: ``{{ attributes }}``, ``{{ messages }}`` and
   ``{{ rules }}`` hold fully formatted PHP array entries, so a stub only
   needs plain placeholder substitution.
2. **Field iteration**: ``fields`` is a list of renderer records
   (see ``Field.to_renderer_dict``) for stubs that loop themselves.

Escaping is disabled: output is source code, not HTML.

A stub directory (``GeneratorSettings.stub_path``) overrides the bundled
templates file by file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from jinja2 import (
    BaseLoader,
    ChoiceLoader,
    DictLoader,
    Environment,
    FileSystemLoader,
    TemplateNotFound,
)

from flowgen.fields import Field
from flowgen.utils import php_quote

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("flowgen.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_INDENT: str = "    "
_ENTRY_INDENT: str = _INDENT * 3

DTO_TEMPLATE: str = """<?php

namespace {{ namespace }};

{% if parentClass %}
use {{ parentClass }};

{% endif %}
class {{ class }}{{ " extends " ~ parentBasename if parentClass else "" }}
{
{% for field in fields %}
    public {{ field.type_hint }} ${{ field.name }}{% if not field.required %} = null{% endif %};
{% endfor %}

    public static function attributes(): array
    {
        return [
{{ attributes }}
        ];
    }

    public static function messages(): array
    {
        return [
{{ messages }}
        ];
    }

    public static function rules(): array
    {
        return [
{{ rules }}
        ];
    }
}
"""

ORGANIZER_TEMPLATE: str = """<?php

namespace {{ namespace }};

{% if parentClass %}
use {{ parentClass }};

{% endif %}
/**
 * Organizer for {{ model }} records.
 */
class {{ class }}{{ " extends " ~ parentBasename if parentClass else "" }}
{
    protected string $table = '{{ table }}';

    protected string $data = '{{ dataClass }}';
{% for op in operations %}

    public function {{ op.method }}(array $input = []): mixed
    {
        return $this->organize('{{ op.name }}', $input);
    }
{% endfor %}
}
"""

BUNDLED_TEMPLATES: Dict[str, str] = {
    "dto.stub.j2": DTO_TEMPLATE,
    "organizer.stub.j2": ORGANIZER_TEMPLATE,
}


# ---------------------------------------------------------------------------
# Block formatters (pre-joined template style)
# ---------------------------------------------------------------------------


def format_attributes_block(fields: Iterable[Field]) -> str:
    """``'name' => 'Label',`` per field."""
    return "\n".join(
        f"{_ENTRY_INDENT}{php_quote(f.get_name())} => {php_quote(f.get_attribute_label())},"
        for f in fields
    )


def format_rules_block(fields: Iterable[Field]) -> str:
    """``'name' => ['required', 'string'],`` per field."""
    lines: List[str] = []
    for f in fields:
        rules: str = ", ".join(php_quote(rule) for rule in f.get_rules())
        lines.append(f"{_ENTRY_INDENT}{php_quote(f.get_name())} => [{rules}],")
    return "\n".join(lines)


def format_messages_block(
    fields: Iterable[Field],
    custom_messages: Optional[Mapping[str, str]] = None,
) -> str:
    """
    All field messages in order, followed by DTO-level custom messages.

    A custom message whose key is already generated replaces that entry in
    place, so every key appears once.
    """
    merged: Dict[str, str] = {}
    for f in fields:
        merged.update(f.get_messages())
    merged.update(custom_messages or {})
    return "\n".join(
        f"{_ENTRY_INDENT}{php_quote(key)} => {php_quote(message)},"
        for key, message in merged.items()
    )


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """
    Loads and renders generator templates.

    Templates are looked up in *stub_path* first (when given) and then in
    the bundled set, mirroring a "publish stubs to customise" workflow.
    """

    def __init__(self, stub_path: Optional[Path] = None) -> None:
        loaders: List[BaseLoader] = []
        if stub_path is not None:
            loaders.append(FileSystemLoader(str(stub_path)))
        loaders.append(DictLoader(BUNDLED_TEMPLATES))

        self._stub_path: Optional[Path] = stub_path
        self.env: Environment = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=False,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def load(self, template_name: str) -> str:
        """
        Return the source of *template_name*.

        Raises:
            TemplateNotFound: when neither the stub directory nor the
                bundled set provides it.
        """
        source, filename, _ = self.env.loader.get_source(self.env, template_name)
        logger.debug(
            "Resolved template '%s' from %s.",
            template_name,
            filename or "bundled templates",
        )
        return source

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        return self.env.get_template(template_name).render(**context)

    def render_string(self, template_source: str, context: Dict[str, Any]) -> str:
        return self.env.from_string(template_source).render(**context)


__all__: List[str] = [
    "TemplateRenderer",
    "TemplateNotFound",
    "BUNDLED_TEMPLATES",
    "DTO_TEMPLATE",
    "ORGANIZER_TEMPLATE",
    "format_attributes_block",
    "format_rules_block",
    "format_messages_block",
]
