"""
Model code generator.

Generates SQLAlchemy declarative model modules from reflected table metadata:
a shared declarative base, one abstract base per schema, and one module per
table holding the mapped class and an optional manager class.
"""

import inspect
import json
from dataclasses import dataclass
from typing import NamedTuple

import sqlalchemy
from sqlalchemy import types as sqltypes

from ormgarden.codegen.generator import CodeGenerator, GeneratedFile, GenerationResult
from ormgarden.config import GardenConfig
from ormgarden.conventions import RESERVED_MODULES, ConventionManager, to_identifier
from ormgarden.core.types import ColumnMetadata, SchemaMetadata, TableMetadata
from ormgarden.logging import get_logger, with_log_context

logger = get_logger(__name__)


@dataclass(frozen=True)
class ModelTarget:
    """Where the model class for a table lives."""

    table: TableMetadata
    module: str
    class_name: str

    @property
    def class_path(self) -> str:
        return f"{self.module}.{self.class_name}"


class RelationshipTarget(NamedTuple):
    """A many-to-one relationship from a model to the model of a referred table."""

    module: str
    class_name: str
    name: str
    nullable: bool
    fk_attribute: str
    remote_attribute: str | None = None


class ModelCodeGenerator(CodeGenerator):
    """
    Generates SQLAlchemy model source code.

    Example output:
        class Product(Base):
            '''Product.'''

            __tablename__ = "products"

            id: Mapped[int] = mapped_column(sa.Integer(), primary_key=True)
            name: Mapped[str | None] = mapped_column(sa.String(length=50))
    """

    def __init__(
        self,
        config: GardenConfig,
        schemas: list[SchemaMetadata],
        conventions: ConventionManager | None = None,
    ) -> None:
        """
        Args:
            config: Garden configuration
            schemas: Introspected schemas; a schema named None gets no sub-package
            conventions: Naming conventions
        """
        super().__init__(config, conventions)
        self.schemas = schemas
        self.targets: list[ModelTarget] = []
        self._planned: dict[tuple[str | None, str], ModelTarget] = {}

    @property
    def base_module(self) -> str:
        return f"{self.config.garden_prefix}.base"

    def generate(self) -> GenerationResult:
        """Generate the base, schema and model modules."""
        result = GenerationResult()
        self.targets = []
        self._planned = {
            (schema.name, target.table.name): target
            for schema in self.schemas
            for target in self.plan(schema)
            if target.table.primary_keys
        }

        if self.config.base_code is not None:
            result.files.append(GeneratedFile(
                path=self.module_file(self.base_module),
                content=self._generate_base_file(),
                module_name=self.base_module,
            ))

        for schema in self.schemas:
            with with_log_context(schema=schema.name):
                result.extend(self.generate_schema(schema))

        return result

    def generate_schema(self, schema: SchemaMetadata) -> GenerationResult:
        """Generate the schema package and a module per mappable table."""
        result = GenerationResult()
        package = self.package_for(schema.name)

        if schema.name:
            result.files.append(GeneratedFile(
                path=self.module_file(package, package=True),
                content=self._generate_schema_file(schema.name),
                module_name=package,
            ))

        for target in self.plan(schema):
            table = target.table
            if not table.primary_keys:
                warning = f"Table {table.name} has no primary key; no model generated"
                logger.warning(warning, schema=schema.name, table=table.name)
                result.warnings.append(warning)
                continue

            result.files.append(GeneratedFile(
                path=self.module_file(target.module),
                content=self._generate_model_file(target, schema.name),
                module_name=target.module,
                class_name=target.class_name,
            ))
            self.targets.append(target)

        return result

    def plan(self, schema: SchemaMetadata) -> list[ModelTarget]:
        """Module and class names for each table, unique within the schema."""
        package = self.package_for(schema.name)
        used: set[str] = set(RESERVED_MODULES)
        targets = []

        for table_name in sorted(schema.tables):
            module = self.conventions.module_name(table_name)
            if module in used:
                module = to_identifier(table_name).lower()
            candidate, n = module, 2
            while candidate in used or candidate.endswith("_form"):
                candidate = f"{module}_{n}"
                n += 1
            used.add(candidate)
            targets.append(ModelTarget(
                table=schema.tables[table_name],
                module=f"{package}.{candidate}",
                class_name=self.conventions.class_name(table_name),
            ))

        return targets

    def _generate_base_file(self) -> str:
        lines = [
            f'"""Declarative base for the {self.config.garden_prefix} models."""',
            "",
            "from sqlalchemy.orm import DeclarativeBase",
            "",
            "",
            "class Base(DeclarativeBase):",
            '    """Base class for all generated models."""',
        ]
        if self.config.base_code:
            lines.append("")
            lines.append(self._indent(self.config.base_code.strip("\n")))
        lines.append("")
        return "\n".join(lines)

    def _generate_schema_file(self, schema_name: str) -> str:
        class_name = self.conventions.schema_class_name(schema_name)
        return "\n".join([
            self._format_docstring(f"Models in the {schema_name} schema.", indent=0),
            "",
            f"from {self.base_module} import Base",
            "",
            "",
            f"class {class_name}(Base):",
            "    " + self._format_docstring(f"Base class for models in the {schema_name} schema."),
            "",
            "    __abstract__ = True",
            f"    __table_args__ = {{\"schema\": {json.dumps(schema_name)}}}",
            "",
        ])

    def _generate_model_file(self, target: ModelTarget, schema_name: str | None) -> str:
        """Generate one model module: preamble, imports, model, manager, postamble."""
        table = target.table
        body = self._generate_model_class(target, schema_name)
        relationships = self._relationship_targets(target, schema_name)

        modules = sorted({
            c.python_type.split(".")[0] for c in table.columns if "." in c.python_type
        })
        typing_names = set()
        if any(c.python_type == "Any" for c in table.columns) or self.config.with_managers:
            typing_names.add("Any")
        imports = sorted({
            (rel.module, rel.class_name) for rel in relationships if rel.module != target.module
        })
        if imports:
            typing_names.add("TYPE_CHECKING")
        if any(rel.nullable for rel in relationships):
            typing_names.add("Optional")

        sa_names = set()
        if table.foreign_keys:
            sa_names.add("ForeignKey")
        if self.config.with_managers:
            sa_names.update({"func", "select"})
        orm_names = {"Mapped", "mapped_column"}
        if relationships:
            orm_names.add("relationship")
        if self.config.with_managers:
            orm_names.add("Session")

        base_module, base_class = self.base_module, "Base"
        if schema_name:
            base_module = self.package_for(schema_name)
            base_class = self.conventions.schema_class_name(schema_name)

        lines = [self._format_docstring(f"Model for the {table.name} table.", indent=0), ""]
        preamble = self._amble(self.config.module_preamble, table)
        if preamble:
            lines.extend([preamble.rstrip("\n"), ""])

        lines.extend(f"import {module}" for module in modules)
        if typing_names:
            lines.append(f"from typing import {', '.join(sorted(typing_names))}")
        if modules or typing_names:
            lines.append("")
        lines.append("import sqlalchemy as sa")
        if sa_names:
            lines.append(f"from sqlalchemy import {', '.join(sorted(sa_names))}")
        lines.append(f"from sqlalchemy.orm import {', '.join(sorted(orm_names))}")
        lines.append("")
        lines.append(f"from {base_module} import {base_class}")

        if imports:
            lines.append("")
            lines.append("if TYPE_CHECKING:")
            lines.extend(f"    from {module} import {class_name}" for module, class_name in imports)

        lines.extend(["", ""])
        lines.extend(body)

        if self.config.with_managers:
            lines.extend(["", ""])
            lines.extend(self._generate_manager_class(target))

        postamble = self._amble(self.config.module_postamble, table)
        if postamble:
            lines.extend(["", postamble.rstrip("\n")])

        lines.append("")
        return "\n".join(lines)

    def _generate_model_class(self, target: ModelTarget, schema_name: str | None) -> list[str]:
        table = target.table
        base_class = (
            self.conventions.schema_class_name(schema_name) if schema_name else "Base"
        )
        lines = [
            f"class {target.class_name}({base_class}):",
            f"    {self._format_docstring(table.comment or target.class_name + '.', indent=4)}",
            "",
            f"    __tablename__ = {json.dumps(table.name)}",
            "",
        ]

        for column in table.ordered_columns():
            lines.append(f"    {self._generate_column(column, schema_name)}")

        relationships = self._relationship_targets(target, schema_name)
        if relationships:
            lines.append("")
            for rel in relationships:
                lines.append(f"    {self._generate_relationship(rel)}")

        return lines

    def _generate_column(self, column: ColumnMetadata, schema_name: str | None) -> str:
        """Generate a ``name: Mapped[...] = mapped_column(...)`` line."""
        annotation = column.python_type
        if column.nullable:
            annotation = f"{annotation} | None"

        args = []
        if column.attribute != column.name:
            args.append(repr(column.name))
        args.append(self.render_type(column.sa_type))
        if column.foreign_key is not None:
            fk = column.foreign_key
            referred_schema = fk.referred_schema or schema_name
            target = f"{fk.referred_table}.{fk.referred_column}"
            if referred_schema:
                target = f"{referred_schema}.{target}"
            args.append(f"ForeignKey({target!r})")
        if column.primary_key:
            args.append("primary_key=True")
        if column.default is not None and column.type_name != "serial":
            args.append(f"server_default=sa.text({column.default!r})")
        if column.comment:
            args.append(f"comment={column.comment!r}")

        return f"{column.attribute}: Mapped[{annotation}] = mapped_column({', '.join(args)})"

    def _relationship_targets(
        self, target: ModelTarget, schema_name: str | None
    ) -> list[RelationshipTarget]:
        """A RelationshipTarget for each many-to-one relationship of the table."""
        if not self.config.with_relationships:
            return []

        table = target.table
        taken = {c.attribute for c in table.columns}
        relationships = []
        for fk in table.foreign_keys:
            referred = self._planned.get((fk.referred_schema or schema_name, fk.referred_table))
            column = table.get_column(fk.column)
            if referred is None or column is None:
                logger.debug("No model for %s; relationship skipped", fk.referred_table)
                continue
            name = self.conventions.relationship_name(fk, taken)
            taken.add(name)

            remote_attribute = None
            if referred.class_path == target.class_path:
                remote = table.get_column(fk.referred_column)
                remote_attribute = remote.attribute if remote is not None else None
            relationships.append(RelationshipTarget(
                module=referred.module,
                class_name=referred.class_name,
                name=name,
                nullable=column.nullable,
                fk_attribute=column.attribute,
                remote_attribute=remote_attribute,
            ))
        return relationships

    def _generate_relationship(self, rel: RelationshipTarget) -> str:
        """Generate a many-to-one ``relationship()`` line joined on its own key."""
        annotation = f'Optional["{rel.class_name}"]' if rel.nullable else f'"{rel.class_name}"'
        args = [f'"{rel.module}.{rel.class_name}"', f"foreign_keys=[{rel.fk_attribute}]"]
        if rel.remote_attribute is not None:
            args.append(f"remote_side=[{rel.remote_attribute}]")
        return f"{rel.name}: Mapped[{annotation}] = relationship({', '.join(args)})"

    def _generate_manager_class(self, target: ModelTarget) -> list[str]:
        model = target.class_name
        manager = self.conventions.manager_class_name(target.table.name)
        return [
            f"class {manager}:",
            f'    """Query helpers for {model}."""',
            "",
            f"    model = {model}",
            "",
            "    @classmethod",
            f"    def get_objects(cls, session: Session, **filters: Any) -> list[{model}]:",
            "        return list(session.scalars(select(cls.model).filter_by(**filters)))",
            "",
            "    @classmethod",
            "    def get_count(cls, session: Session, **filters: Any) -> int:",
            "        query = select(cls.model).filter_by(**filters).subquery()",
            "        return session.scalar(select(func.count()).select_from(query)) or 0",
        ]

    def render_type(self, sa_type: object) -> str:
        """
        Source text constructing a generic SQLAlchemy type, e.g.
        ``sa.String(length=50)``. Dialect types are rendered through their
        generic equivalent; anything without one becomes ``NullType``.
        """
        if sa_type is None:
            return "sa.types.NullType()"
        try:
            generic = sa_type.as_generic()  # type: ignore[attr-defined]
        except NotImplementedError:
            generic = sa_type

        name = type(generic).__name__
        if getattr(sqlalchemy, name, None) is not type(generic):
            return "sa.types.NullType()"

        args = []
        if isinstance(generic, sqltypes.ARRAY):
            args.append(self.render_type(generic.item_type))
            if generic.dimensions:
                args.append(f"dimensions={generic.dimensions}")
        elif isinstance(generic, sqltypes.Enum):
            args.extend(repr(value) for value in generic.enums)
            if generic.name:
                args.append(f"name={generic.name!r}")
        elif isinstance(generic, sqltypes.String):
            if generic.length:
                args.append(f"length={generic.length}")
        elif isinstance(generic, sqltypes.Float):
            if generic.precision is not None:
                args.append(f"precision={generic.precision}")
        elif isinstance(generic, sqltypes.Numeric):
            if generic.precision is not None:
                args.append(f"precision={generic.precision}")
            if generic.scale is not None:
                args.append(f"scale={generic.scale}")
        elif isinstance(generic, (sqltypes.DateTime, sqltypes.Time)):
            if generic.timezone:
                args.append("timezone=True")
        elif isinstance(generic, sqltypes.LargeBinary):
            if generic.length:
                args.append(f"length={generic.length}")

        if not args and _required_arguments(type(generic)):
            return "sa.types.NullType()"
        return f"sa.{name}({', '.join(args)})"

    def _amble(self, amble: object, table: TableMetadata) -> str:
        if amble is None:
            return ""
        if callable(amble):
            return str(amble(table))
        return str(amble)


def _required_arguments(type_class: type) -> list[str]:
    """Constructor parameters of a type class that have no default."""
    try:
        parameters = inspect.signature(type_class.__init__).parameters.values()
    except (TypeError, ValueError):
        return []
    return [
        p.name
        for p in list(parameters)[1:]
        if p.default is p.empty and p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    ]
