"""
Live database introspection.

Reflects schemas, tables and columns through SQLAlchemy's inspector and turns
them into garden metadata.
"""

from typing import Any

from sqlalchemy import inspect
from sqlalchemy.engine import Engine, Inspector
from sqlalchemy.exc import SQLAlchemyError

from ormgarden.config import GardenConfig
from ormgarden.conventions import ConventionManager
from ormgarden.core.errors import IntrospectionError
from ormgarden.core.types import (
    ColumnMetadata,
    ForeignKeyMetadata,
    SchemaMetadata,
    TableMetadata,
)
from ormgarden.introspection.types import normalize_type_name, python_type_for, type_length
from ormgarden.logging import get_logger

logger = get_logger(__name__)


class DatabaseIntrospector:
    """
    Introspects a live database connection to extract table metadata.
    """

    def __init__(
        self,
        engine: Engine,
        config: GardenConfig | None = None,
        conventions: ConventionManager | None = None,
    ) -> None:
        """
        Args:
            engine: SQLAlchemy engine connected to the database
            config: Garden options (schema discovery and table filters)
            conventions: Naming conventions used for attribute names
        """
        self.engine = engine
        self.config = config or GardenConfig()
        self.conventions = conventions or ConventionManager()
        self._inspector: Inspector | None = None

    @property
    def inspector(self) -> Inspector:
        if self._inspector is None:
            try:
                self._inspector = inspect(self.engine)
            except SQLAlchemyError as e:
                raise IntrospectionError(f"Can't inspect database: {e}") from e
        return self._inspector

    def list_schemas(self) -> list[str | None]:
        """
        Schemas to generate.

        With schema discovery off this is ``[None]``: one unnamed schema,
        the connection's default. Otherwise every schema holding at least one
        table, minus the database's own catalog schemas.
        """
        if not self.config.find_schemas:
            return [None]

        try:
            names = self.inspector.get_schema_names()
        except SQLAlchemyError as e:
            raise IntrospectionError(f"Can't list schemas: {e}") from e

        schemas: list[str | None] = []
        for name in sorted(names):
            if name in self.config.native_schemas:
                continue
            try:
                if not self.inspector.get_table_names(schema=name):
                    logger.debug("Skipping empty schema %s", name)
                    continue
            except SQLAlchemyError as e:
                raise IntrospectionError(f"Can't list tables: {e}", schema=name) from e
            schemas.append(name)
        return schemas

    def introspect(self, schema: str | None = None) -> SchemaMetadata:
        """Reflect every wanted table in one schema."""
        try:
            table_names = self.inspector.get_table_names(schema=schema)
        except SQLAlchemyError as e:
            raise IntrospectionError(f"Can't list tables: {e}", schema=schema) from e

        tables: dict[str, TableMetadata] = {}
        for table_name in sorted(table_names):
            if not self.config.wants_table(table_name):
                logger.debug("Filtered out table %s", table_name, schema=schema)
                continue
            tables[table_name] = self.introspect_table(table_name, schema)

        return SchemaMetadata(name=schema, tables=tables)

    def introspect_table(self, table_name: str, schema: str | None = None) -> TableMetadata:
        """Reflect one table."""
        try:
            raw_columns = self.inspector.get_columns(table_name, schema=schema)
            pk = self.inspector.get_pk_constraint(table_name, schema=schema)
            raw_fks = self.inspector.get_foreign_keys(table_name, schema=schema)
            comment = self._table_comment(table_name, schema)
        except SQLAlchemyError as e:
            raise IntrospectionError(
                f"Can't reflect table {table_name}: {e}", schema=schema, table=table_name
            ) from e

        primary_keys = list(pk.get("constrained_columns") or [])
        foreign_keys = self._foreign_keys(raw_fks, schema)
        fk_by_column = {fk.column: fk for fk in foreign_keys}

        columns = [
            self._introspect_column(
                raw,
                position=index,
                primary_keys=primary_keys,
                foreign_key=fk_by_column.get(raw["name"]),
            )
            for index, raw in enumerate(raw_columns, start=1)
        ]

        logger.debug(
            "Reflected %s with %d columns", table_name, len(columns), schema=schema
        )

        return TableMetadata(
            name=table_name,
            schema_name=schema,
            columns=columns,
            primary_keys=primary_keys,
            foreign_keys=foreign_keys,
            comment=comment,
        )

    def _introspect_column(
        self,
        raw: dict[str, Any],
        *,
        position: int,
        primary_keys: list[str],
        foreign_key: ForeignKeyMetadata | None,
    ) -> ColumnMetadata:
        sa_type = raw["type"]
        name = raw["name"]
        is_pk = name in primary_keys
        default = raw.get("default")
        default_text = str(default) if default is not None else None
        autoincrement = raw.get("autoincrement") is True or bool(raw.get("identity"))

        return ColumnMetadata(
            name=name,
            attribute=self.conventions.attribute_name(name),
            type_name=normalize_type_name(
                sa_type,
                primary_key=is_pk,
                sole_primary_key=is_pk and len(primary_keys) == 1,
                autoincrement=autoincrement,
                default=default_text,
            ),
            sa_type=sa_type,
            python_type=python_type_for(sa_type),
            length=type_length(sa_type),
            nullable=bool(raw.get("nullable", True)) and not is_pk,
            primary_key=is_pk,
            autoincrement=autoincrement,
            position=position,
            foreign_key=foreign_key,
            default=default_text,
            comment=raw.get("comment"),
        )

    def _foreign_keys(
        self, raw_fks: list[dict[str, Any]], schema: str | None
    ) -> list[ForeignKeyMetadata]:
        """Single-column foreign keys; composite keys are not mapped to columns."""
        foreign_keys = []
        for raw in raw_fks:
            constrained = raw.get("constrained_columns") or []
            referred = raw.get("referred_columns") or []
            if len(constrained) != 1 or len(referred) != 1:
                logger.debug("Skipping composite foreign key %s", raw.get("name"))
                continue
            referred_schema = raw.get("referred_schema")
            foreign_keys.append(
                ForeignKeyMetadata(
                    column=constrained[0],
                    referred_table=raw["referred_table"],
                    referred_column=referred[0],
                    referred_schema=referred_schema if referred_schema != schema else None,
                )
            )
        return foreign_keys

    def _table_comment(self, table_name: str, schema: str | None) -> str | None:
        try:
            return self.inspector.get_table_comment(table_name, schema=schema).get("text")
        except NotImplementedError:
            return None
