"""
ormgarden: bootstrap SQLAlchemy models and WTForms forms from a live database.

Point a Garden at a database and plant it in a directory:

    from sqlalchemy import create_engine
    from ormgarden import Garden

    garden = Garden(create_engine("sqlite:///shop.db"), garden_prefix="shop")
    garden.plant("src")

The output is plain source code, meant to be edited by hand afterwards.
"""

from ormgarden.codegen import (
    FormCodeGenerator,
    GeneratedFile,
    GenerationResult,
    ModelCodeGenerator,
    ModelTarget,
)
from ormgarden.config import (
    DEFAULT_COLUMN_FIELD_MAP,
    GardenConfig,
    default_column_to_label,
    title_case_label,
)
from ormgarden.conventions import ConventionManager
from ormgarden.core import (
    ColumnMetadata,
    ConfigurationError,
    ForeignKeyMetadata,
    GardenError,
    GenerationError,
    IntrospectionError,
    ModelLoadError,
    SchemaMetadata,
    TableMetadata,
)
from ormgarden.garden import Garden
from ormgarden.introspection import DatabaseIntrospector, ModelIntrospector

__version__ = "0.3.0"

__all__ = [
    # Entry point
    "Garden",
    "GardenConfig",
    "ConventionManager",
    "DEFAULT_COLUMN_FIELD_MAP",
    "default_column_to_label",
    "title_case_label",
    # Introspection
    "DatabaseIntrospector",
    "ModelIntrospector",
    # Code generation
    "ModelCodeGenerator",
    "FormCodeGenerator",
    "ModelTarget",
    "GeneratedFile",
    "GenerationResult",
    # Types
    "ColumnMetadata",
    "ForeignKeyMetadata",
    "TableMetadata",
    "SchemaMetadata",
    # Errors
    "GardenError",
    "ConfigurationError",
    "IntrospectionError",
    "GenerationError",
    "ModelLoadError",
]
