"""
The garden: point it at a database and get model and form classes.
"""

from pathlib import Path
from typing import Any

from sqlalchemy.engine import Engine

from ormgarden.codegen.forms import FormCodeGenerator
from ormgarden.codegen.generator import GenerationResult
from ormgarden.codegen.models import ModelCodeGenerator
from ormgarden.config import GardenConfig
from ormgarden.conventions import ConventionManager
from ormgarden.core.types import SchemaMetadata
from ormgarden.introspection.database import DatabaseIntrospector
from ormgarden.logging import get_logger, with_log_context

logger = get_logger(__name__)


class Garden:
    """
    Bootstraps SQLAlchemy model classes and WTForms form classes from a live
    database.

    Example:
        garden = Garden(
            create_engine("postgresql://localhost/shop"),
            garden_prefix="shop_garden",
            find_schemas=False,
        )
        garden.plant("path/to/where/i/want/files")
    """

    def __init__(
        self,
        engine: Engine,
        config: GardenConfig | None = None,
        conventions: ConventionManager | None = None,
        **options: Any,
    ) -> None:
        """
        Args:
            engine: SQLAlchemy engine for the database to introspect
            config: Garden configuration; keyword options build one if omitted
            conventions: Naming conventions shared by all generators
            **options: GardenConfig fields, used when no config is given
        """
        if config is not None and options:
            raise TypeError("Pass either a GardenConfig or keyword options, not both")
        self.engine = engine
        self.config = config or GardenConfig(**options)
        self.conventions = conventions or ConventionManager()
        self.introspector = DatabaseIntrospector(engine, self.config, self.conventions)
        self.result: GenerationResult | None = None

    def introspect(self) -> list[SchemaMetadata]:
        """Reflect every schema the garden will generate."""
        schemas = []
        for name in self.introspector.list_schemas():
            with with_log_context(schema=name):
                schemas.append(self.introspector.introspect(name))
        return schemas

    def generate(self, schemas: list[SchemaMetadata] | None = None) -> GenerationResult:
        """
        Generate model and form source in memory.

        Models come first, then forms for every non-map model.
        """
        if schemas is None:
            schemas = self.introspect()

        models = ModelCodeGenerator(self.config, schemas, self.conventions)
        result = models.generate()

        forms = FormCodeGenerator(self.config, models.targets, self.conventions, garden=self)
        result.extend(forms.generate())
        return result

    def plant(self, path: str | Path | None = None) -> list[str]:
        """
        Introspect, generate and write the garden under ``path``.

        Files that already exist with content are kept unless
        ``force_install`` is set.

        Returns:
            Dotted paths of every model and form class generated
        """
        if not path:
            raise ValueError("path required")

        base_dir = Path(path)
        base_dir.mkdir(parents=True, exist_ok=True)

        with with_log_context(garden_prefix=self.config.garden_prefix):
            result = self.generate()
            result.write_all(
                base_dir,
                overwrite=self.config.force_install,
                formatter=self.config.code_formatter(),
            )

        self.result = result
        return result.class_paths()

    make_garden = plant
