"""
Schema introspection: live databases and mapped model classes.
"""

from ormgarden.introspection.database import DatabaseIntrospector
from ormgarden.introspection.models import ModelIntrospector
from ormgarden.introspection.types import normalize_type_name, python_type_for

__all__ = [
    "DatabaseIntrospector",
    "ModelIntrospector",
    "normalize_type_name",
    "python_type_for",
]
