"""
Error taxonomy for ormgarden.

All ormgarden errors inherit from GardenError and include:
- A unique error code for programmatic handling
- A human-readable message
- Optional details describing what was being generated
"""

from typing import Any


class GardenError(Exception):
    """
    Base class for all ormgarden errors.

    Attributes:
        code: Unique error code for programmatic handling
        message: Human-readable error message
        details: Additional error context
    """

    code: str = "GARDEN_ERROR"

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to a dictionary for serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(GardenError):
    """A garden option has an invalid value."""

    code = "CONFIGURATION_ERROR"

    def __init__(self, option: str, value: Any, reason: str) -> None:
        super().__init__(
            f"Invalid value for '{option}': {value!r} ({reason})",
            details={"option": option, "value": value, "reason": reason},
        )


class IntrospectionError(GardenError):
    """Reading schema metadata from the database failed."""

    code = "INTROSPECTION_ERROR"

    def __init__(
        self,
        message: str,
        *,
        schema: str | None = None,
        table: str | None = None,
    ) -> None:
        super().__init__(
            message,
            details={"schema": schema, "table": table},
        )


class GenerationError(GardenError):
    """Generated source text is not valid Python."""

    code = "GENERATION_ERROR"

    def __init__(self, path: str, error: SyntaxError) -> None:
        super().__init__(
            f"Generated source for {path} does not compile: {error.msg} (line {error.lineno})",
            details={"path": path, "line": error.lineno, "error": error.msg},
        )


class ModelLoadError(GardenError):
    """A class handed to the model introspector is not a mapped table class."""

    code = "MODEL_LOAD_ERROR"

    def __init__(self, model: Any) -> None:
        name = getattr(model, "__name__", repr(model))
        super().__init__(
            f"Can't load table metadata from {name}",
            details={"model": name},
        )
