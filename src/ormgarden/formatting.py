"""
Optional source formatters run over generated files before they are written.

A formatter is any callable taking source text and returning it reformatted.
Named formatters can be picked by string in ``GardenConfig.formatter``.
"""

from collections.abc import Callable

from ormgarden.core.errors import ConfigurationError

Formatter = Callable[[str], str]


def black_formatter(source: str) -> str:
    """Reformat source with black's default style."""
    try:
        import black
    except ImportError as err:
        raise ConfigurationError(
            "formatter",
            "black",
            "black is not installed. Install with: pip install ormgarden[black]",
        ) from err

    return black.format_str(source, mode=black.Mode())


FORMATTERS: dict[str, Formatter] = {
    "black": black_formatter,
}
