"""Console logging for the sketchddd CLI.

Library modules only create loggers; handlers are attached here, once, by
the command-line entry point. Everything goes to stderr so that stdout can
carry generated code or JSON diagnostics untouched.
"""

from __future__ import annotations

import logging
from typing import Literal, TypeAlias

from rich.console import Console
from rich.logging import RichHandler

PROJECT_PREFIX = "sketchddd"

# -v / -q steps, from most to least verbose.
_LEVELS = [logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR]


class ThirdPartyPrefixFilter(logging.Filter):
    """Mark records from other libraries (rdflib, pyshacl) with a prefix.

    ``record.prefix`` becomes e.g. ``[rdflib]`` for foreign loggers and the
    empty string for sketchddd's own. The record is always kept.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith(PROJECT_PREFIX):
            record.prefix = ""
        else:
            record.prefix = f"[{record.name.split('.')[0]}]"
        return True


def config_console_handler(
    level: int = logging.WARNING, debug_mode: bool = False, color: bool = True
) -> RichHandler:
    """Build a RichHandler writing to stderr.

    Debug mode forces DEBUG, shows the source path of each record and
    switches to a name-qualified format.
    """
    ColorSystem: TypeAlias = Literal["auto", "standard", "256", "truecolor", "windows"]
    color_system: ColorSystem | None = "auto" if color else None
    console = Console(color_system=color_system, stderr=True)

    if debug_mode:
        level = logging.DEBUG

    handler = RichHandler(
        level=level,
        console=console,
        rich_tracebacks=True,
        show_time=False,
        show_path=debug_mode,
        enable_link_path=debug_mode,
    )
    fmt = "%(asctime)s %(name)s: %(message)s" if debug_mode else "%(prefix)s %(message)s"
    handler.setFormatter(logging.Formatter(fmt=fmt))
    if not debug_mode:
        handler.addFilter(ThirdPartyPrefixFilter())
    return handler


def level_for(verbosity: int) -> int:
    """Map a -v/-q balance to a level: 0 is WARNING, +1 INFO, -1 ERROR."""
    index = _LEVELS.index(logging.WARNING) - verbosity
    return _LEVELS[max(0, min(index, len(_LEVELS) - 1))]


def configure_logging(verbosity: int = 0, debug: bool = False, color: bool = True) -> RichHandler:
    """Attach a fresh console handler to the root logger.

    Handlers installed by an earlier call are replaced, so repeated CLI
    invocations in one process (as in tests) do not stack output.
    """
    level = logging.DEBUG if debug else level_for(verbosity)
    handler = config_console_handler(level=level, debug_mode=debug, color=color)
    root = logging.getLogger()
    for old in [h for h in root.handlers if getattr(h, "_sketchddd", False)]:
        root.removeHandler(old)
    handler._sketchddd = True
    root.addHandler(handler)
    root.setLevel(level)
    return handler
