"""
Shared type definitions for ormgarden.
"""

from typing import Any

from pydantic import BaseModel, Field


class ForeignKeyMetadata(BaseModel):
    """Metadata for a single-column foreign key reference."""

    column: str
    referred_table: str
    referred_column: str
    referred_schema: str | None = None

    model_config = {"frozen": True}

    @property
    def target(self) -> str:
        """Dotted target as accepted by ``sqlalchemy.ForeignKey``."""
        if self.referred_schema:
            return f"{self.referred_schema}.{self.referred_table}.{self.referred_column}"
        return f"{self.referred_table}.{self.referred_column}"


class ColumnMetadata(BaseModel):
    """Metadata for a table column."""

    name: str
    attribute: str
    type_name: str  # Normalized lower-case type, e.g. "varchar" or "serial"
    sa_type: Any = None
    python_type: str = "Any"
    length: int | None = None
    nullable: bool = True
    primary_key: bool = False
    autoincrement: bool = False
    position: int | None = None
    foreign_key: ForeignKeyMetadata | None = None
    default: str | None = None
    comment: str | None = None

    model_config = {"frozen": True, "arbitrary_types_allowed": True}


class TableMetadata(BaseModel):
    """Metadata for a database table."""

    name: str
    schema_name: str | None = None
    columns: list[ColumnMetadata] = Field(default_factory=list)
    primary_keys: list[str] = Field(default_factory=list)
    foreign_keys: list[ForeignKeyMetadata] = Field(default_factory=list)
    comment: str | None = None

    model_config = {"frozen": True}

    def get_column(self, name: str) -> ColumnMetadata | None:
        """Get metadata for a column by its database name."""
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def ordered_columns(self) -> list[ColumnMetadata]:
        """
        Columns in the order they appear in the database.

        Ties (and columns without a known position) are broken by
        case-insensitive name; unpositioned columns sort last.
        """
        return sorted(
            self.columns,
            key=lambda c: (
                c.position is None,
                c.position if c.position is not None else 0,
                c.name.lower(),
            ),
        )


class SchemaMetadata(BaseModel):
    """Tables found in one database schema."""

    name: str | None = None
    tables: dict[str, TableMetadata] = Field(default_factory=dict)

    model_config = {"frozen": True}

    def get_table(self, name: str) -> TableMetadata | None:
        """Get metadata for a specific table."""
        return self.tables.get(name)

    def list_tables(self) -> list[str]:
        """List all table names."""
        return list(self.tables.keys())
