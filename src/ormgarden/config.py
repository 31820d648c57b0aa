"""
Garden configuration.

Every option can be passed to ``GardenConfig`` directly. Subclasses can change
the defaults by overriding the ``default_*`` hooks, and ``from_env`` layers
``GARDEN_*`` environment variables on top.
"""

from __future__ import annotations

import keyword
import os
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ormgarden.core.errors import ConfigurationError
from ormgarden.core.types import TableMetadata
from ormgarden.formatting import FORMATTERS, Formatter

if TYPE_CHECKING:
    from ormgarden.garden import Garden

LabelMaker = Callable[["Garden", str], str]
Amble = str | Callable[[TableMetadata], str] | None

DEFAULT_GARDEN_PREFIX = "my_rose_garden"
DEFAULT_TEXT_FIELD_SIZE = 64

# Column type name -> form field kind
DEFAULT_COLUMN_FIELD_MAP: dict[str, str] = {
    "varchar": "text",
    "text": "textarea",
    "character": "text",
    "date": "date",
    "datetime": "datetime",
    "epoch": "datetime",
    "integer": "integer",
    "serial": "hidden",
    "time": "time",
    "timestamp": "datetime",
    "float": "numeric",
    "numeric": "numeric",
    "decimal": "numeric",
    "double precision": "numeric",
    "boolean": "boolean",
}

# Catalog schemas of PostgreSQL and MySQL
DEFAULT_NATIVE_SCHEMAS = frozenset({
    "information_schema",
    "pg_catalog",
    "pg_toast",
    "mysql",
    "performance_schema",
    "sys",
})

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def default_column_to_label(garden: Garden, column_name: str) -> str:
    """Use the column name unchanged as the field label."""
    return column_name


def title_case_label(garden: Garden, column_name: str) -> str:
    """Turn ``first_name`` into ``First Name``."""
    return " ".join(part.capitalize() for part in column_name.split("_") if part)


def is_dotted_identifier(value: str) -> bool:
    """Check that every dotted part is a non-keyword Python identifier."""
    return bool(value) and all(
        part.isidentifier() and not keyword.iskeyword(part) for part in value.split(".")
    )


@dataclass
class GardenConfig:
    """Options controlling what the garden generates and where."""

    garden_prefix: str = ""
    find_schemas: bool = True
    force_install: bool = False
    column_field_map: dict[str, str] = field(default_factory=dict)
    column_to_label: LabelMaker | None = None
    text_field_size: int | None = None
    base_code: str | None = ""
    module_preamble: Amble = None
    module_postamble: Amble = None
    include_tables: str | None = None
    exclude_tables: str | None = None
    with_relationships: bool = True
    with_managers: bool = True
    native_schemas: frozenset[str] = DEFAULT_NATIVE_SCHEMAS
    formatter: str | Formatter | None = None

    def __post_init__(self) -> None:
        if not self.garden_prefix:
            self.garden_prefix = self.default_garden_prefix()
        if not self.column_field_map:
            self.column_field_map = self.default_column_field_map()
        if self.column_to_label is None:
            self.column_to_label = self.default_column_to_label()
        if self.text_field_size is None:
            self.text_field_size = self.default_text_field_size()
        self.validate()

    # Defaults, overridable in subclasses

    def default_garden_prefix(self) -> str:
        return DEFAULT_GARDEN_PREFIX

    def default_column_field_map(self) -> dict[str, str]:
        return dict(DEFAULT_COLUMN_FIELD_MAP)

    def default_column_to_label(self) -> LabelMaker:
        return default_column_to_label

    def default_text_field_size(self) -> int:
        return DEFAULT_TEXT_FIELD_SIZE

    def validate(self) -> None:
        """Raise ConfigurationError for options that can't produce valid code."""
        if not is_dotted_identifier(self.garden_prefix):
            raise ConfigurationError(
                "garden_prefix", self.garden_prefix, "must be a dotted Python identifier"
            )
        if not isinstance(self.text_field_size, int) or self.text_field_size < 1:
            raise ConfigurationError(
                "text_field_size", self.text_field_size, "must be a positive integer"
            )
        if not callable(self.column_to_label):
            raise ConfigurationError("column_to_label", self.column_to_label, "must be callable")
        if isinstance(self.formatter, str):
            if self.formatter not in FORMATTERS:
                raise ConfigurationError(
                    "formatter", self.formatter, f"must be one of {sorted(FORMATTERS)}"
                )
        elif self.formatter is not None and not callable(self.formatter):
            raise ConfigurationError("formatter", self.formatter, "must be a name or callable")
        for option in ("include_tables", "exclude_tables"):
            pattern = getattr(self, option)
            if pattern is None:
                continue
            try:
                re.compile(pattern)
            except re.error as e:
                raise ConfigurationError(option, pattern, str(e)) from e

    def wants_table(self, table_name: str) -> bool:
        """Apply include/exclude filters to a table name."""
        if self.include_tables and not re.search(self.include_tables, table_name):
            return False
        if self.exclude_tables and re.search(self.exclude_tables, table_name):
            return False
        return True

    def field_kind(self, type_name: str) -> str:
        """Form field kind for a normalized column type name."""
        return self.column_field_map.get(type_name, "text")

    def code_formatter(self) -> Formatter | None:
        """The formatter callable to run over generated files, if any."""
        if isinstance(self.formatter, str):
            return FORMATTERS[self.formatter]
        return self.formatter

    def prefix_path(self) -> str:
        """Relative directory of the garden prefix package."""
        return self.garden_prefix.replace(".", "/")

    @classmethod
    def from_env(
        cls,
        prefix: str = "GARDEN_",
        environ: dict[str, str] | None = None,
        **overrides: Any,
    ) -> GardenConfig:
        """
        Build a config from ``<prefix>*`` environment variables.

        Recognized variables: PREFIX, FIND_SCHEMAS, FORCE_INSTALL,
        TEXT_FIELD_SIZE, INCLUDE_TABLES, EXCLUDE_TABLES, FORMATTER. Keyword
        overrides win over the environment.
        """
        env = os.environ if environ is None else environ
        options: dict[str, Any] = {}

        if f"{prefix}PREFIX" in env:
            options["garden_prefix"] = env[f"{prefix}PREFIX"]
        for name, option in (
            ("FIND_SCHEMAS", "find_schemas"),
            ("FORCE_INSTALL", "force_install"),
        ):
            key = f"{prefix}{name}"
            if key in env:
                options[option] = _parse_bool(option, env[key])
        key = f"{prefix}TEXT_FIELD_SIZE"
        if key in env:
            try:
                options["text_field_size"] = int(env[key])
            except ValueError as e:
                raise ConfigurationError("text_field_size", env[key], "not an integer") from e
        for name, option in (
            ("INCLUDE_TABLES", "include_tables"),
            ("EXCLUDE_TABLES", "exclude_tables"),
            ("FORMATTER", "formatter"),
        ):
            key = f"{prefix}{name}"
            if env.get(key):
                options[option] = env[key]

        options.update(overrides)
        return cls(**options)


def _parse_bool(option: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigurationError(option, value, "not a boolean")
