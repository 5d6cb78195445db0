"""sketchddd command-line interface.

    $ sketchddd check commerce.yaml
    $ sketchddd check commerce.yaml --format json
    $ sketchddd codegen commerce.yaml --target rust --output generated/
    $ sketchddd viz commerce.yaml --format graphviz
    $ sketchddd explain E0002
    $ sketchddd init my-domain/

Exit status: 0 on success, 1 when the model has errors (or a target failed
to generate), 2 when the input cannot be read at all.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from . import __version__
from .codegen import generate_all
from .codes import lookup
from .config import ConfigLoader, ProjectConfig, Target, load_config
from .context import BoundedContext
from .context_map import DomainModel
from .errors import ConfigError, ModelLoadError, UnsupportedTargetError
from .loader import load_model_file
from .logging import configure_logging
from .render import RenderMode, render
from .validation import validate
from .viz import DiagramFormat, generate as generate_diagram

logger = logging.getLogger(__name__)

EXIT_INVALID = 1
EXIT_USAGE = 2

STARTER_MODEL = """\
contexts:
  - name: Commerce
    description: Orders placed by customers
    objects:
      - entity: Customer
        fields: {name: String, email: String}
      - entity: Order
        fields: {totalPrice: Decimal}
      - entity: LineItem
        fields: {price: Decimal, quantity: Int}
      - enum: OrderStatus
        variants: [Pending, Paid, Shipped]
      - aggregate: OrderAggregate
        root: Order
        members: [LineItem]
        invariants:
          - "totalPrice = sum(items.price)"
    morphisms:
      - {name: placedBy, source: Order, target: Customer, cardinality: one}
      - {name: items, source: Order, target: LineItem, cardinality: many}
      - {name: status, source: Order, target: OrderStatus, cardinality: one}
"""


def _fail(message: str, code: int = EXIT_USAGE) -> None:
    click.echo(f"error: {message}", err=True)
    sys.exit(code)


def _load(path: Path) -> tuple[DomainModel, str]:
    try:
        return load_model_file(path)
    except ModelLoadError as e:
        _fail(str(e))


def _config(model_path: Path, config_path: Path | None) -> ProjectConfig:
    try:
        return load_config(model_path.parent, config_path)
    except ConfigError as e:
        _fail(str(e))


def _select(model: DomainModel, name: str | None) -> list[BoundedContext]:
    if name is None:
        return list(model.contexts.values())
    context = model.get_context(name)
    if context is None:
        _fail(f"no bounded context named '{name}' (have: {', '.join(model.contexts) or 'none'})")
    return [context]


@click.group(help="Validate domain models and generate code from them.")
@click.version_option(__version__, prog_name="sketchddd")
@click.option("--verbose", "-v", "verbose_count", count=True,
              help="Increase the default WARNING verbosity by one level per repetition.")
@click.option("--quiet", "-q", "quiet_count", count=True,
              help="Decrease the default WARNING verbosity by one level per repetition.")
@click.option("--debug/--no-debug", default=False, help="Log everything, with source locations.")
@click.option("--color/--no-color", default=True, help="Colorize log output.")
def cli(verbose_count: int, quiet_count: int, debug: bool, color: bool) -> None:
    configure_logging(verbose_count - quiet_count, debug=debug, color=color)


@cli.command()
@click.argument("model_file", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--format", "fmt", type=click.Choice(["human", "json"]), default="human",
              show_default=True, help="Diagnostic output format.")
@click.option("--hints/--no-hints", default=True, help="Include naming hints.")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Configuration file (default: sketchddd.yaml next to the model).")
def check(model_file: Path, fmt: str, hints: bool, config_path: Path | None) -> None:
    """Validate MODEL_FILE and report every diagnostic."""
    model, text = _load(model_file)
    config = _config(model_file, config_path)
    result = validate(model, hints=hints)
    output = render(
        result.diagnostics,
        text,
        RenderMode.parse(fmt),
        context_lines=config.diagnostics.context_lines,
        show_help=config.diagnostics.show_help,
    )
    if output:
        click.echo(output, nl=not output.endswith("\n"))
    if fmt == "human" and result.is_ok() and not result.diagnostics:
        click.echo(f"{model_file}: no issues found", err=True)
    sys.exit(0 if result.is_ok() else EXIT_INVALID)


@cli.command()
@click.argument("model_file", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--target", "-t", "targets", multiple=True,
              help="Target language (repeatable; default: the configured targets).")
@click.option("--context", "context_name", help="Only generate this bounded context.")
@click.option("--output", "-o", "output_dir", type=click.Path(file_okay=False, path_type=Path),
              help="Write files under this directory instead of printing them.")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Configuration file (default: sketchddd.yaml next to the model).")
def codegen(model_file: Path, targets: tuple[str, ...], context_name: str | None,
            output_dir: Path | None, config_path: Path | None) -> None:
    """Generate source code from MODEL_FILE."""
    model, text = _load(model_file)
    config = _config(model_file, config_path)
    try:
        selected = [Target.parse(t) for t in targets] or list(config.targets)
    except UnsupportedTargetError as e:
        _fail(str(e))

    result = validate(model, hints=False)
    if not result.is_ok():
        click.echo(render(result.diagnostics, text, RenderMode.HUMAN,
                          context_lines=config.diagnostics.context_lines,
                          show_help=config.diagnostics.show_help), nl=False)
        _fail("model has errors; code generation refused", EXIT_INVALID)

    failed = False
    for context in _select(model, context_name):
        generation = generate_all(context, config, selected)
        for target, reason in generation.failures.items():
            click.echo(f"error: {target.value}: {reason}", err=True)
            failed = True
        for target, files in generation.files.items():
            for f in files:
                if output_dir is None:
                    click.echo(f"// ---- {target.value}: {f.filename}")
                    click.echo(f.content, nl=False)
                    continue
                path = output_dir / target.value / f.filename
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(f.content, encoding="utf-8")
                logger.info("Wrote %s", path)
                click.echo(f"wrote {path}", err=True)
    sys.exit(EXIT_INVALID if failed else 0)


@cli.command()
@click.argument("model_file", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--format", "fmt", default="mermaid", show_default=True,
              help="Diagram format: mermaid or graphviz (aliases md, dot).")
@click.option("--context", "context_name", help="Only draw this bounded context.")
@click.option("--output", "-o", "output_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Write the diagram to this file instead of printing it.")
def viz(model_file: Path, fmt: str, context_name: str | None, output_path: Path | None) -> None:
    """Draw the bounded contexts of MODEL_FILE."""
    model, _text = _load(model_file)
    try:
        diagram_format = DiagramFormat.parse(fmt)
    except ValueError as e:
        _fail(str(e))
    diagrams = [generate_diagram(ctx, diagram_format) for ctx in _select(model, context_name)]
    text = "\n".join(diagrams)
    if output_path is None:
        click.echo(text, nl=False)
    else:
        output_path.write_text(text, encoding="utf-8")
        click.echo(f"wrote {output_path}", err=True)


@cli.command()
@click.argument("code")
def explain(code: str) -> None:
    """Describe a diagnostic code, e.g. E0002."""
    info = lookup(code)
    if info is None:
        _fail(f"unknown diagnostic code '{code}'")
    click.echo(info.describe())


@cli.command()
@click.argument("directory", type=click.Path(file_okay=False, path_type=Path), default=".")
@click.option("--force", is_flag=True, help="Overwrite existing files.")
def init(directory: Path, force: bool) -> None:
    """Create a sketchddd.yaml and a starter model in DIRECTORY."""
    directory.mkdir(parents=True, exist_ok=True)
    loader = ConfigLoader(directory)
    model_path = directory / "model.yaml"
    existing = [p for p in (directory / ConfigLoader.CONFIG_FILENAME, model_path) if p.exists()]
    if existing and not force:
        _fail(f"{existing[0]} already exists (use --force to overwrite)", EXIT_INVALID)
    config_file = loader.save(ProjectConfig())
    model_path.write_text(STARTER_MODEL, encoding="utf-8")
    click.echo(f"wrote {config_file}", err=True)
    click.echo(f"wrote {model_path}", err=True)


def main() -> None:
    cli(prog_name="sketchddd")


if __name__ == "__main__":
    main()
