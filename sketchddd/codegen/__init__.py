"""Code generation: IR builder, language backends and the target registry.

    unit = build(context)                     # BoundedContext -> CodeUnit
    files = generate(context, "rust")         # validate, build, render
    result = generate_all(context, config)    # every configured target

Generation is gated on validation: a context with any Error diagnostic is
refused with InvalidModelError. Warnings and hints never block.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..config import ProjectConfig, Target, TargetOptions
from ..context import BoundedContext
from ..errors import InvalidModelError, UnsupportedConstructError
from ..validation import validate
from .backend import Backend, Capability, GeneratedFile
from .builder import IRBuilder, build
from .ir import CodeUnit
from .java import JavaBackend
from .kotlin import KotlinBackend
from .rust import RustBackend
from .shacl import ShaclBackend
from .typescript import TypeScriptBackend

logger = logging.getLogger(__name__)

__all__ = [
    "BACKENDS",
    "Backend",
    "Capability",
    "GeneratedFile",
    "GenerationResult",
    "IRBuilder",
    "build",
    "generate",
    "generate_all",
    "get_backend",
]

BACKENDS: dict[Target, type[Backend]] = {
    Target.TYPESCRIPT: TypeScriptBackend,
    Target.RUST: RustBackend,
    Target.KOTLIN: KotlinBackend,
    Target.JAVA: JavaBackend,
    Target.SHACL: ShaclBackend,
}


def get_backend(target: Target | str, options: TargetOptions | None = None) -> Backend:
    """Instantiate the backend for ``target`` (a Target or an alias string)."""
    if isinstance(target, str) and not isinstance(target, Target):
        target = Target.parse(target)
    return BACKENDS[target](options)


def _gate(context: BoundedContext) -> CodeUnit:
    result = validate(context, hints=False)
    if not result.is_ok():
        raise InvalidModelError(result)
    return build(context)


def generate(
    source: BoundedContext | CodeUnit,
    target: Target | str,
    options: TargetOptions | None = None,
) -> list[GeneratedFile]:
    """Generate source files for one target.

    A BoundedContext is validated first and refused if it has errors. A
    CodeUnit is assumed to come from a validated context and is rendered
    as is.
    """
    unit = source if isinstance(source, CodeUnit) else _gate(source)
    return get_backend(target, options).generate(unit)


@dataclass
class GenerationResult:
    """Files per target, plus the targets whose backend failed."""
    files: dict[Target, list[GeneratedFile]] = field(default_factory=dict)
    failures: dict[Target, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    def all_files(self) -> list[GeneratedFile]:
        return [f for files in self.files.values() for f in files]

    def summary(self) -> str:
        lines = ["Code generation", "-" * 50]
        for target, files in self.files.items():
            lines.append(f"  {target.value}: {len(files)} file(s)")
            lines.extend(f"    - {f.filename}" for f in files)
        for target, reason in self.failures.items():
            lines.append(f"  {target.value}: FAILED ({reason})")
        return "\n".join(lines)


def generate_all(
    context: BoundedContext,
    config: ProjectConfig | None = None,
    targets: list[Target] | None = None,
) -> GenerationResult:
    """Generate every target, isolating backend contract failures.

    Validation runs once; an invalid context raises InvalidModelError
    before any backend runs. An UnsupportedConstructError in one backend is
    recorded under that target and the remaining targets still run.
    """
    config = config or ProjectConfig()
    unit = _gate(context)
    result = GenerationResult()
    for target in targets or config.targets:
        backend = get_backend(target, config.options_for(target))
        try:
            result.files[target] = backend.generate(unit)
        except UnsupportedConstructError as e:
            logger.error("Generation for %s failed: %s", target.value, e)
            result.failures[target] = str(e)
    return result
