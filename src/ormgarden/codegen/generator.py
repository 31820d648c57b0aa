"""
Base code generator.
"""

import ast
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from ormgarden.config import GardenConfig
from ormgarden.conventions import ConventionManager
from ormgarden.core.errors import GenerationError
from ormgarden.formatting import Formatter
from ormgarden.logging import get_logger, with_log_context

logger = get_logger(__name__)

PACKAGE_INIT = '"""Generated package."""\n'


def escape_docstring(text: str) -> str:
    """Escape text so it can sit between triple double quotes."""
    return text.replace("\\", "\\\\").replace('"', '\\"')


@dataclass
class GeneratedFile:
    """A generated source file."""

    path: str
    content: str
    module_name: str
    class_name: str | None = None

    @property
    def class_path(self) -> str | None:
        """Dotted import path of the class this file declares."""
        if self.class_name is None:
            return None
        return f"{self.module_name}.{self.class_name}"

    def check(self) -> None:
        """Raise GenerationError unless the content parses as Python."""
        try:
            ast.parse(self.content, filename=self.path)
        except SyntaxError as e:
            raise GenerationError(self.path, e) from e


@dataclass
class GenerationResult:
    """Result of code generation."""

    files: list[GeneratedFile] = field(default_factory=list)
    skipped: list[GeneratedFile] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def extend(self, other: "GenerationResult") -> None:
        self.files.extend(other.files)
        self.skipped.extend(other.skipped)
        self.warnings.extend(other.warnings)

    def class_paths(self) -> list[str]:
        return [gf.class_path for gf in self.files if gf.class_path is not None]

    def write_all(
        self,
        base_dir: Path | str,
        *,
        overwrite: bool = False,
        formatter: Formatter | None = None,
    ) -> list[Path]:
        """
        Write all generated files to disk.

        Files that already exist with content are left alone unless
        ``overwrite`` is set. Missing ``__init__.py`` files are created so
        every generated module is importable from ``base_dir``.
        Every file is syntax checked, and formatted when a formatter is
        given, before anything is written.

        Args:
            base_dir: Base directory to write files to
            overwrite: Replace existing non-empty files
            formatter: Callable reformatting each file's source text

        Returns:
            List of paths to written files
        """
        base_path = Path(base_dir)
        written = []

        for gf in self.files:
            gf.check()
        if formatter is not None:
            for gf in self.files:
                gf.content = formatter(gf.content)
                gf.check()

        for gf in self.files:
            file_path = base_path / gf.path
            with with_log_context(path=gf.path):
                if not overwrite and _has_content(file_path):
                    logger.info("skipping %s (%s)", gf.module_name, gf.path)
                    self.skipped.append(gf)
                    continue

                file_path.parent.mkdir(parents=True, exist_ok=True)
                _ensure_packages(base_path, file_path.parent)
                file_path.write_text(gf.content)
                written.append(file_path)
                logger.info("%s written to %s", gf.class_path or gf.module_name, gf.path)

        return written


def _has_content(path: Path) -> bool:
    return path.is_file() and path.stat().st_size > 0


def _ensure_packages(base_path: Path, directory: Path) -> None:
    """Create empty ``__init__.py`` files from base_path down to directory."""
    relative = directory.relative_to(base_path)
    current = base_path
    for part in relative.parts:
        current = current / part
        init = current / "__init__.py"
        if not init.exists():
            init.write_text(PACKAGE_INIT)


class CodeGenerator(ABC):
    """
    Abstract base class for code generators.

    Code generators take table metadata and garden configuration and produce
    Python source code.
    """

    def __init__(
        self,
        config: GardenConfig,
        conventions: ConventionManager | None = None,
    ) -> None:
        """
        Args:
            config: Garden configuration
            conventions: Naming conventions shared with the other generators
        """
        self.config = config
        self.conventions = conventions or ConventionManager()

    @abstractmethod
    def generate(self) -> GenerationResult:
        """
        Generate source code.

        Returns:
            GenerationResult containing generated files and any warnings
        """
        ...

    def package_for(self, schema: str | None) -> str:
        """Dotted package holding a schema's modules."""
        if schema:
            return f"{self.config.garden_prefix}.{self.conventions.schema_package(schema)}"
        return self.config.garden_prefix

    def module_file(self, module: str, *, package: bool = False) -> str:
        """Relative file path for a dotted module name."""
        path = module.replace(".", "/")
        return f"{path}/__init__.py" if package else f"{path}.py"

    def _indent(self, text: str, spaces: int = 4) -> str:
        """Indent text by a number of spaces."""
        prefix = " " * spaces
        return "\n".join(prefix + line if line else line for line in text.split("\n"))

    def _format_docstring(self, text: str, indent: int = 4) -> str:
        """Format a docstring with proper indentation, escaping quotes and backslashes."""
        lines = escape_docstring(text.strip()).split("\n")
        if len(lines) == 1:
            return f'"""{lines[0]}"""'
        prefix = " " * indent
        formatted = ['"""']
        formatted.extend(lines)
        formatted.append('"""')
        return "\n".join(prefix + line if i > 0 else line for i, line in enumerate(formatted))
