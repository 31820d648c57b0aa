"""
Mapped-class introspection.

Builds table metadata from SQLAlchemy declarative classes, so forms can be
planted for model classes that were written (or edited) by hand.
"""

from typing import Any

from sqlalchemy import inspect
from sqlalchemy.exc import NoInspectionAvailable
from sqlalchemy.orm.exc import UnmappedColumnError
from sqlalchemy.schema import Table

from ormgarden.conventions import ConventionManager
from ormgarden.core.errors import ModelLoadError
from ormgarden.core.types import ColumnMetadata, ForeignKeyMetadata, TableMetadata
from ormgarden.introspection.types import normalize_type_name, python_type_for, type_length


class ModelIntrospector:
    """
    Introspects SQLAlchemy models to extract table metadata.
    """

    def __init__(
        self,
        models: list[type],
        conventions: ConventionManager | None = None,
    ) -> None:
        """
        Args:
            models: SQLAlchemy declarative model classes
            conventions: Naming conventions for attributes without a mapper key
        """
        self.models = models
        self.conventions = conventions or ConventionManager()

    def introspect(self) -> dict[type, TableMetadata]:
        """Metadata for every registered model, keyed by class."""
        return {model: self.introspect_model(model) for model in self.models}

    def introspect_model(self, model: type) -> TableMetadata:
        """Introspect a single model."""
        try:
            mapper = inspect(model)
        except NoInspectionAvailable as e:
            raise ModelLoadError(model) from e

        table = getattr(mapper, "local_table", None)
        if not isinstance(table, Table):
            raise ModelLoadError(model)

        primary_keys = [c.name for c in table.primary_key.columns]
        foreign_keys: list[ForeignKeyMetadata] = []
        columns: list[ColumnMetadata] = []

        for index, column in enumerate(table.columns, start=1):
            fk = self._foreign_key(column, table.schema)
            if fk is not None:
                foreign_keys.append(fk)
            columns.append(
                self._introspect_column(
                    column,
                    position=index,
                    attribute=self._attribute_for(mapper, column),
                    sole_primary_key=len(primary_keys) == 1,
                    foreign_key=fk,
                )
            )

        return TableMetadata(
            name=table.name,
            schema_name=table.schema,
            columns=columns,
            primary_keys=primary_keys,
            foreign_keys=foreign_keys,
            comment=table.comment or model.__doc__,
        )

    def _introspect_column(
        self,
        column: Any,
        *,
        position: int,
        attribute: str,
        sole_primary_key: bool,
        foreign_key: ForeignKeyMetadata | None,
    ) -> ColumnMetadata:
        default = self._get_default(column)
        # "auto" is the declarative default, not an explicit request
        autoincrement = column.autoincrement is True

        return ColumnMetadata(
            name=column.name,
            attribute=attribute,
            type_name=normalize_type_name(
                column.type,
                primary_key=column.primary_key,
                sole_primary_key=column.primary_key and sole_primary_key,
                autoincrement=autoincrement,
                default=default,
            ),
            sa_type=column.type,
            python_type=python_type_for(column.type),
            length=type_length(column.type),
            nullable=bool(column.nullable) and not column.primary_key,
            primary_key=column.primary_key,
            autoincrement=autoincrement,
            position=position,
            foreign_key=foreign_key,
            default=default,
            comment=column.comment or column.doc,
        )

    def _attribute_for(self, mapper: Any, column: Any) -> str:
        try:
            return mapper.get_property_by_column(column).key
        except UnmappedColumnError:
            return self.conventions.attribute_name(column.name)

    def _foreign_key(self, column: Any, schema: str | None) -> ForeignKeyMetadata | None:
        fks = list(column.foreign_keys)
        if len(fks) != 1:
            return None
        target = fks[0].target_fullname.split(".")
        if len(target) == 3:
            referred_schema, referred_table, referred_column = target
        else:
            referred_schema, (referred_table, referred_column) = None, target[-2:]
        return ForeignKeyMetadata(
            column=column.name,
            referred_table=referred_table,
            referred_column=referred_column,
            referred_schema=referred_schema if referred_schema != schema else None,
        )

    def _get_default(self, column: Any) -> str | None:
        """Text of a scalar or server default, if any."""
        if column.server_default is not None:
            arg = getattr(column.server_default, "arg", None)
            if arg is not None:
                return str(getattr(arg, "text", arg))
        if column.default is not None and column.default.is_scalar:
            return repr(column.default.arg)
        return None
