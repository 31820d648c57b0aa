"""
Core types and errors shared by introspection and code generation.
"""

from ormgarden.core.errors import (
    ConfigurationError,
    GardenError,
    GenerationError,
    IntrospectionError,
    ModelLoadError,
)
from ormgarden.core.types import (
    ColumnMetadata,
    ForeignKeyMetadata,
    SchemaMetadata,
    TableMetadata,
)

__all__ = [
    # Types
    "ColumnMetadata",
    "ForeignKeyMetadata",
    "SchemaMetadata",
    "TableMetadata",
    # Errors
    "GardenError",
    "ConfigurationError",
    "IntrospectionError",
    "GenerationError",
    "ModelLoadError",
]
