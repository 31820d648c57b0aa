"""
Form code generator.

Generates WTForms form classes that sit beside the generated models. Each
column becomes one field, its kind looked up in the configured column field
map and its text produced by a ``render_<kind>_field`` method.
"""

import json
from typing import Any

import inflection

from ormgarden.codegen.generator import CodeGenerator, GeneratedFile, GenerationResult
from ormgarden.codegen.models import ModelTarget
from ormgarden.config import GardenConfig
from ormgarden.conventions import ConventionManager
from ormgarden.core.types import ColumnMetadata
from ormgarden.introspection.models import ModelIntrospector
from ormgarden.logging import get_logger, with_log_context

logger = get_logger(__name__)

# Form field kind -> wtforms field class
FIELD_CLASSES: dict[str, str] = {
    "text": "StringField",
    "textarea": "TextAreaField",
    "boolean": "BooleanField",
    "hidden": "HiddenField",
    "date": "DateField",
    "datetime": "DateTimeField",
    "time": "TimeField",
    "integer": "IntegerField",
    "numeric": "DecimalField",
    "email": "EmailField",
    "password": "PasswordField",
}

TEXTAREA_ROWS = 8


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


class FormCodeGenerator(CodeGenerator):
    """
    Generates WTForms form source code for model classes.

    Map (join) tables are skipped. Example output:
        class ProductForm(Form):
            '''Form for my_rose_garden.product.Product.'''

            id = HiddenField(
                "id",  # serial
                id="id",
            )
            name = StringField(
                "name",  # varchar
                id="name",
                validators=[validators.InputRequired(), validators.Length(max=50)],
                render_kw={"tabindex": 2, "size": 50, "maxlength": 64},
            )
    """

    def __init__(
        self,
        config: GardenConfig,
        targets: list[ModelTarget],
        conventions: ConventionManager | None = None,
        garden: Any = None,
    ) -> None:
        """
        Args:
            config: Garden configuration (field map, labels, text field size)
            targets: Model classes to build forms for
            conventions: Naming conventions
            garden: Passed to the ``column_to_label`` callable
        """
        super().__init__(config, conventions)
        self.targets = targets
        self.garden = garden
        # Model attribute -> form field name for the form being generated
        self._field_names: dict[str, str] = {}

    @classmethod
    def from_models(
        cls,
        config: GardenConfig,
        models: list[type],
        conventions: ConventionManager | None = None,
        garden: Any = None,
    ) -> "FormCodeGenerator":
        """Build a generator for existing mapped classes."""
        introspector = ModelIntrospector(models, conventions)
        targets = [
            ModelTarget(table=table, module=model.__module__, class_name=model.__name__)
            for model, table in introspector.introspect().items()
        ]
        return cls(config, targets, conventions, garden)

    @property
    def base_form_module(self) -> str:
        return f"{self.config.garden_prefix}.form"

    def generate(self) -> GenerationResult:
        """Generate the base form and one form module per non-map table."""
        result = GenerationResult()
        result.files.append(GeneratedFile(
            path=self.module_file(self.base_form_module),
            content=self._generate_base_file(),
            module_name=self.base_form_module,
        ))

        modules: set[str] = set()
        for target in self.targets:
            table = target.table
            with with_log_context(schema=table.schema_name, table=table.name):
                if self.conventions.is_map_table(table):
                    logger.info("skipping map table %s", target.class_path)
                    continue

                module = f"{target.module}_form"
                if module in modules:
                    # Several mapped classes share one module
                    module = f"{target.module}_{inflection.underscore(target.class_name)}_form"
                modules.add(module)
                result.files.append(GeneratedFile(
                    path=self.module_file(module),
                    content=self.generate_form(target),
                    module_name=module,
                    class_name=self.conventions.form_class_name(target.class_name),
                ))

        return result

    def _generate_base_file(self) -> str:
        return "\n".join([
            f'"""Base form for the {self.config.garden_prefix} forms."""',
            "",
            "from wtforms import Form as BaseForm",
            "",
            "",
            "class Form(BaseForm):",
            '    """Base class for all generated forms."""',
            "",
            "    # Form field name -> model attribute, where the two differ",
            "    _model_attributes: dict[str, str] = {}",
            "",
            "    def populate_obj(self, obj):",
            "        for name, field in self._fields.items():",
            "            field.populate_obj(obj, self._model_attributes.get(name, name))",
            "",
        ])

    def generate_form(self, target: ModelTarget) -> str:
        """Source text of the form module for one model."""
        table = target.table
        form_class = self.conventions.form_class_name(target.class_name)
        columns = table.ordered_columns()
        self._field_names = self._unique_field_names(columns)

        fields = []
        field_classes = set()
        for tabindex, column in enumerate(columns, start=1):
            text, field_class = self.column_to_field(column, tabindex)
            fields.append(text)
            field_classes.add(field_class)
        renamed = {
            name: attribute
            for attribute, name in self._field_names.items()
            if name != attribute
        }
        self._field_names = {}

        uses_validators = any("validators." in text for text in fields)
        names = sorted(field_classes) + (["validators"] if uses_validators else [])

        lines = [
            self._format_docstring(f"Form for the {table.name} table.", indent=0),
            "",
            f"from wtforms import {', '.join(names)}",
            "",
            f"from {self.base_form_module} import Form",
            "",
            "",
            f"class {form_class}(Form):",
            f'    """Form for {target.class_path}."""',
            "",
        ]
        if renamed:
            items = ", ".join(f"{_quote(k)}: {_quote(v)}" for k, v in renamed.items())
            lines.extend([f"    _model_attributes = {{{items}}}", ""])
        if fields:
            lines.extend(fields)
        else:
            lines.append("    pass")
        lines.append("")
        return "\n".join(lines)

    def column_to_field(self, column: ColumnMetadata, tabindex: int) -> tuple[str, str]:
        """
        Render one column as a field definition.

        Returns the field text and the wtforms class it uses.
        """
        kind = self.config.field_kind(column.type_name)
        label = self.config.column_to_label(self.garden, column.name)
        renderer = getattr(self, f"render_{kind}_field", None)
        if renderer is None:
            renderer = self.render_default_field
        return renderer(column, label, tabindex)

    def field_class(self, kind: str) -> str:
        return FIELD_CLASSES.get(kind, "StringField")

    # Field renderers

    def render_default_field(
        self, column: ColumnMetadata, label: str, tabindex: int
    ) -> tuple[str, str]:
        """Any kind without its own renderer: sized like a text input."""
        kind = self.config.field_kind(column.type_name)
        return self._field(
            self.field_class(kind),
            column,
            label,
            validators=self._validators(column),
            render_kw={"tabindex": tabindex, **self._text_size(column)},
        )

    def render_text_field(
        self, column: ColumnMetadata, label: str, tabindex: int
    ) -> tuple[str, str]:
        validators = self._validators(column)
        if column.length:
            validators.append(f"validators.Length(max={column.length})")
        return self._field(
            "StringField",
            column,
            label,
            validators=validators,
            render_kw={"tabindex": tabindex, **self._text_size(column)},
        )

    def render_textarea_field(
        self, column: ColumnMetadata, label: str, tabindex: int
    ) -> tuple[str, str]:
        validators = self._validators(column)
        if column.length:
            validators.append(f"validators.Length(max={column.length})")
        return self._field(
            "TextAreaField",
            column,
            label,
            validators=validators,
            render_kw={
                "tabindex": tabindex,
                "cols": self.config.text_field_size,
                "rows": TEXTAREA_ROWS,
            },
        )

    def render_boolean_field(
        self, column: ColumnMetadata, label: str, tabindex: int
    ) -> tuple[str, str]:
        # An unchecked box is a valid False, so never InputRequired
        return self._field(
            "BooleanField",
            column,
            label,
            validators=["validators.Optional()"] if column.nullable else [],
            render_kw={"tabindex": tabindex},
        )

    def render_hidden_field(
        self, column: ColumnMetadata, label: str, tabindex: int
    ) -> tuple[str, str]:
        return self._field("HiddenField", column, label, validators=[], render_kw={})

    # Helpers

    def _unique_field_names(self, columns: list[ColumnMetadata]) -> dict[str, str]:
        """Field name per model attribute; ``_code`` and ``code`` can't share one."""
        names: dict[str, str] = {}
        taken = {column.attribute for column in columns}
        for column in columns:
            name = self.conventions.form_field_name(column.attribute)
            if name != column.attribute:
                while name in taken:
                    name = f"{name}_"
            taken.add(name)
            names[column.attribute] = name
        return names

    def _validators(self, column: ColumnMetadata) -> list[str]:
        if column.nullable:
            return ["validators.Optional()"]
        return ["validators.InputRequired()"]

    def _text_size(self, column: ColumnMetadata) -> dict[str, int]:
        """size is the column length capped at text_field_size; maxlength the cap."""
        maxlength = self.config.text_field_size
        size = min(column.length or 0, maxlength)
        attrs = {}
        if size:
            attrs["size"] = size
        attrs["maxlength"] = maxlength
        return attrs

    def _field(
        self,
        field_class: str,
        column: ColumnMetadata,
        label: str,
        *,
        validators: list[str],
        render_kw: dict[str, int],
    ) -> tuple[str, str]:
        name = self._field_names.get(column.attribute) or self.conventions.form_field_name(
            column.attribute
        )
        lines = [
            f"    {name} = {field_class}(",
            f"        {_quote(label)},  # {column.type_name}",
            f"        id={_quote(name)},",
        ]
        if validators:
            lines.append(f"        validators=[{', '.join(validators)}],")
        if render_kw:
            items = ", ".join(f"{_quote(k)}: {v}" for k, v in render_kw.items())
            lines.append(f"        render_kw={{{items}}},")
        lines.append("    )")
        return "\n".join(lines), field_class
