"""
Mapping of SQLAlchemy column types onto garden type names and Python types.
"""

from typing import Any

from sqlalchemy import types as sqltypes

# Checked in order; subclasses must come before their parents.
_TYPE_NAMES: list[tuple[type, str]] = [
    (sqltypes.Boolean, "boolean"),
    (sqltypes.TIMESTAMP, "timestamp"),
    (sqltypes.DateTime, "datetime"),
    (sqltypes.Date, "date"),
    (sqltypes.Time, "time"),
    (sqltypes.Interval, "interval"),
    (sqltypes.Integer, "integer"),
    (sqltypes.Double, "double precision"),
    (sqltypes.Float, "float"),
    (sqltypes.DECIMAL, "decimal"),
    (sqltypes.Numeric, "numeric"),
    (sqltypes.Enum, "enum"),
    (sqltypes.Text, "text"),
    (sqltypes.CHAR, "character"),
    (sqltypes.String, "varchar"),
    (sqltypes.LargeBinary, "binary"),
    (sqltypes.JSON, "json"),
    (sqltypes.Uuid, "uuid"),
]

_PYTHON_TYPES: list[tuple[type, str]] = [
    (sqltypes.Boolean, "bool"),
    (sqltypes.DateTime, "datetime.datetime"),
    (sqltypes.Date, "datetime.date"),
    (sqltypes.Time, "datetime.time"),
    (sqltypes.Interval, "datetime.timedelta"),
    (sqltypes.Integer, "int"),
    (sqltypes.Float, "float"),
    (sqltypes.Enum, "str"),
    (sqltypes.String, "str"),
    (sqltypes.LargeBinary, "bytes"),
    (sqltypes.Uuid, "uuid.UUID"),
]


def normalize_type_name(
    sa_type: Any,
    *,
    primary_key: bool = False,
    sole_primary_key: bool = False,
    autoincrement: bool = False,
    default: str | None = None,
) -> str:
    """
    Normalized lower-case name for a column type.

    Integer columns that are the only primary key, that autoincrement, or
    that draw from a sequence are reported as ``serial``.
    """
    for sa_class, name in _TYPE_NAMES:
        if isinstance(sa_type, sa_class):
            if name == "integer" and _is_serial(
                primary_key, sole_primary_key, autoincrement, default
            ):
                return "serial"
            return name

    visit_name = getattr(sa_type, "__visit_name__", None) or type(sa_type).__name__
    return str(visit_name).lower()


def _is_serial(
    primary_key: bool,
    sole_primary_key: bool,
    autoincrement: bool,
    default: str | None,
) -> bool:
    if primary_key and sole_primary_key:
        return True
    if autoincrement:
        return True
    return bool(default and "nextval(" in default.lower())


def python_type_for(sa_type: Any) -> str:
    """Python annotation text for a column type, e.g. ``datetime.date``."""
    if isinstance(sa_type, sqltypes.Numeric) and not isinstance(sa_type, sqltypes.Float):
        return "decimal.Decimal" if sa_type.asdecimal else "float"
    for sa_class, annotation in _PYTHON_TYPES:
        if isinstance(sa_type, sa_class):
            return annotation
    return "Any"


def type_length(sa_type: Any) -> int | None:
    """Declared length of string-like types, if any."""
    length = getattr(sa_type, "length", None)
    if isinstance(length, int) and length > 0:
        return length
    return None
