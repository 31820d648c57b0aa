"""
Naming conventions linking tables, model classes, modules and forms.
"""

import keyword
import re

import inflection

from ormgarden.core.types import ForeignKeyMetadata, TableMetadata

# Names a generated model class body looks up after its first column: the
# declarative base attributes, the module's imports and the annotation builtins
RESERVED_MODEL_ATTRIBUTES = frozenset({
    "metadata",
    "registry",
    "Any",
    "ForeignKey",
    "Mapped",
    "Optional",
    "Session",
    "TYPE_CHECKING",
    "bool",
    "bytes",
    "datetime",
    "decimal",
    "float",
    "func",
    "int",
    "mapped_column",
    "relationship",
    "sa",
    "select",
    "str",
    "uuid",
})

# Names wtforms.Form already defines on form instances, plus the names a
# generated form module imports
RESERVED_FORM_ATTRIBUTES = frozenset({
    "Form",
    "Meta",
    "data",
    "errors",
    "form_errors",
    "meta",
    "populate_obj",
    "process",
    "validate",
    "validators",
})

# Names generated modules import next to the model class
RESERVED_CLASS_NAMES = frozenset(
    {"Any", "Base", "ForeignKey", "Form", "Mapped", "Optional", "Session", "TYPE_CHECKING"}
)

# Modules the garden writes itself at each package level
RESERVED_MODULES = frozenset({"base", "form"})

_SPACES = re.compile(r"\s+")
_MAP_TABLE_NAME = re.compile(r"_maps?$", re.IGNORECASE)


def to_identifier(name: str) -> str:
    """Squash an arbitrary database name into a Python identifier."""
    kept = "".join(c if ("_" + c).isidentifier() else " " for c in name)
    ident = _SPACES.sub("_", kept.strip()) or "x"
    if not ident.isidentifier():
        ident = f"_{ident}"
    if keyword.iskeyword(ident):
        ident = f"{ident}_"
    return ident


class ConventionManager:
    """
    Derives Python names from database names.

    Subclass and override any method to change how the generated tree is
    named; the garden only talks to the conventions through this class.
    """

    def class_name(self, table_name: str) -> str:
        """``order_items`` -> ``OrderItem``."""
        base = to_identifier(table_name)
        if base.isupper():
            base = base.lower()
        name = inflection.camelize(inflection.singularize(base.lstrip("_")) or base)
        if not name[0].isalpha():
            name = f"T{name.lstrip('_')}"
        if not name.isidentifier():
            name = to_identifier(name)
        if name in RESERVED_CLASS_NAMES or keyword.iskeyword(name):
            name = f"{name}Model"
        return name

    def module_name(self, table_name: str) -> str:
        """``order_items`` -> ``order_item``."""
        name = inflection.underscore(self.class_name(table_name))
        if not name.isidentifier():
            name = to_identifier(name)
        # Form modules are named <model module>_form
        if keyword.iskeyword(name) or name in RESERVED_MODULES or name.endswith("_form"):
            name = f"{name}_"
        return name

    def form_class_name(self, class_name: str) -> str:
        return f"{class_name}Form"

    def manager_class_name(self, table_name: str) -> str:
        return f"{self.class_name(table_name)}Manager"

    def schema_package(self, schema_name: str) -> str:
        """Sub-package holding a schema's models, e.g. ``sales``."""
        name = to_identifier(schema_name).lower()
        if name in RESERVED_MODULES:
            name = f"{name}_"
        return name

    def schema_class_name(self, schema_name: str) -> str:
        return f"{inflection.camelize(to_identifier(schema_name).lower())}Base"

    def attribute_name(self, column_name: str) -> str:
        """Model attribute for a column; reserved names get a trailing underscore."""
        name = to_identifier(column_name)
        if name in RESERVED_MODEL_ATTRIBUTES:
            name = f"{name}_"
        return name

    def form_field_name(self, attribute: str) -> str:
        """
        Form field for a model attribute. wtforms skips names starting with
        ``_`` and runs ``validate_<field>`` attributes as inline validators.
        """
        name = attribute.lstrip("_")
        if not name.isidentifier():
            name = f"field_{name}"
        if (
            name in RESERVED_FORM_ATTRIBUTES
            or name.startswith("validate_")
            or (name[0].isupper() and name.endswith("Field"))
            or keyword.iskeyword(name)
        ):
            name = f"{name}_"
        return name

    def relationship_name(self, fk: ForeignKeyMetadata, taken: set[str]) -> str:
        """
        ``customer_id`` -> ``customer``; other columns fall back to the
        singular of the referred table.
        """
        column = fk.column.lower()
        if column.endswith("_id") and len(column) > 3:
            name = to_identifier(column[:-3])
        else:
            name = inflection.underscore(self.class_name(fk.referred_table))
        if name in RESERVED_MODEL_ATTRIBUTES or keyword.iskeyword(name):
            name = f"{name}_"
        while name in taken:
            name = f"{name}_rel"
        return name

    def is_map_table(self, table: TableMetadata) -> bool:
        """
        Whether a table only links two or more other tables (many-to-many).

        Map tables get a model class but no form.
        """
        if len(table.foreign_keys) < 2:
            return False
        if _MAP_TABLE_NAME.search(table.name):
            return True
        fk_columns = {fk.column for fk in table.foreign_keys}
        return all(c.name in fk_columns or c.primary_key for c in table.columns)
