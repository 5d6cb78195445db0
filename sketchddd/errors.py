"""Exception hierarchy for SketchDDD.

Invalid models are not exceptional: they produce Diagnostics. These
exceptions cover the cases where an operation cannot proceed at all.
"""

from __future__ import annotations


class SketchDDDError(Exception):
    """Base class for all SketchDDD failures."""


class InvalidModelError(SketchDDDError):
    """Code generation was refused because validation reported errors."""

    def __init__(self, result, message: str | None = None):
        self.result = result
        super().__init__(
            message or f"model has {result.error_count} error(s); code generation refused"
        )


class UnsupportedTargetError(SketchDDDError):
    """No backend is registered under the requested target name."""


class UnsupportedConstructError(SketchDDDError):
    """A backend received an IR node it can neither render nor lower.

    This is a contract violation inside code generation, not a model
    problem. It aborts generation for that target only.
    """

    def __init__(self, backend: str, construct: str, item: str):
        self.backend = backend
        self.construct = construct
        self.item = item
        super().__init__(f"{backend} backend cannot render {construct} '{item}'")


class ModelLoadError(SketchDDDError):
    """A model document is malformed and cannot be turned into a model."""

    def __init__(self, message: str, file: str | None = None,
                 line: int | None = None, column: int | None = None):
        self.file = file
        self.line = line
        self.column = column
        self.reason = message
        where = ""
        if line is not None:
            where = f"{file or '<input>'}:{line}:{column or 1}: "
        super().__init__(f"{where}{message}")


class EquationSyntaxError(ModelLoadError):
    """An equation string does not follow the equation grammar."""


class ConfigError(SketchDDDError):
    """A configuration file exists but could not be read or validated."""
