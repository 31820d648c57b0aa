"""
Command-line entry point: ``ormgarden DATABASE_URL PATH``.
"""

import argparse
import sys

from sqlalchemy import create_engine
from sqlalchemy.exc import ArgumentError

from ormgarden.config import GardenConfig
from ormgarden.core.errors import GardenError
from ormgarden.formatting import FORMATTERS
from ormgarden.garden import Garden
from ormgarden.logging import LogFormat, LogLevel, configure_logging, get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ormgarden",
        description="Bootstrap SQLAlchemy model and WTForms form classes from a database.",
    )
    parser.add_argument("database_url", help="SQLAlchemy database URL")
    parser.add_argument("path", help="Directory to write the generated packages to")
    parser.add_argument("--prefix", dest="garden_prefix", help="Root package name")
    parser.add_argument(
        "--no-schemas",
        dest="find_schemas",
        action="store_false",
        default=None,
        help="Ignore database schemas and generate the default one only",
    )
    parser.add_argument(
        "--force",
        dest="force_install",
        action="store_true",
        default=None,
        help="Overwrite existing files",
    )
    parser.add_argument("--text-field-size", type=int, help="Cap for text input sizes")
    parser.add_argument("--include", dest="include_tables", help="Only tables matching REGEX")
    parser.add_argument("--exclude", dest="exclude_tables", help="Skip tables matching REGEX")
    parser.add_argument(
        "--no-relationships",
        dest="with_relationships",
        action="store_false",
        default=None,
        help="Don't generate relationship() attributes",
    )
    parser.add_argument(
        "--no-managers",
        dest="with_managers",
        action="store_false",
        default=None,
        help="Don't generate manager classes",
    )
    parser.add_argument(
        "--formatter",
        choices=sorted(FORMATTERS),
        help="Run generated files through a code formatter",
    )
    parser.add_argument(
        "--log-level",
        default=LogLevel.INFO.value,
        choices=[level.value for level in LogLevel],
    )
    parser.add_argument(
        "--log-format",
        default=LogFormat.TEXT.value,
        choices=[fmt.value for fmt in LogFormat],
    )
    return parser


CONFIG_OPTIONS = (
    "garden_prefix",
    "find_schemas",
    "force_install",
    "text_field_size",
    "include_tables",
    "exclude_tables",
    "with_relationships",
    "with_managers",
    "formatter",
)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(level=args.log_level, format=args.log_format)

    overrides = {
        option: getattr(args, option)
        for option in CONFIG_OPTIONS
        if getattr(args, option) is not None
    }

    try:
        config = GardenConfig.from_env(**overrides)
        engine = create_engine(args.database_url)
    except (GardenError, ArgumentError) as e:
        print(f"ormgarden: {e}", file=sys.stderr)
        return 1

    try:
        classes = Garden(engine, config).plant(args.path)
    except GardenError as e:
        logger.error("Generation failed: %s", e.message, code=e.code)
        print(f"ormgarden: {e.message}", file=sys.stderr)
        return 1
    finally:
        engine.dispose()

    for class_path in classes:
        print(class_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
