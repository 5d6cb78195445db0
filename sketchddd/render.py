"""Diagnostic rendering: annotated text for people, JSON for tools.

``render()`` is a pure function of the diagnostics and the source text it
is given. It never consults the model, and the same input always produces
the same output.

Human mode looks like a compiler error:

    error[E0002]: cannot find object `Custommer` used as target of morphism `placedBy`
     --> commerce.yaml:14:47
       |
    14 |       - {name: placedBy, source: Order, target: Custommer}
       |                                                 ^^^^^^^^^ not found in context `Commerce`
       |
       = help: did you mean 'Customer'?
"""

from __future__ import annotations

import json
from collections import defaultdict
from enum import Enum
from typing import Mapping

from .diagnostics import Diagnostic, Label, Severity


class RenderMode(Enum):
    HUMAN = "human"
    MACHINE = "machine"

    @classmethod
    def parse(cls, text: str) -> RenderMode:
        aliases = {"text": "human", "json": "machine"}
        value = text.strip().lower()
        return cls(aliases.get(value, value))


Sources = str | Mapping[str, str] | None


def render(
    diagnostics: list[Diagnostic],
    source: Sources = None,
    mode: RenderMode | str = RenderMode.HUMAN,
    context_lines: int = 1,
    show_help: bool = True,
) -> str:
    """Render ``diagnostics`` in ``mode``.

    ``source`` is the text of the document the spans point into, or a
    mapping of file name to text when spans cover several files.
    """
    if isinstance(mode, str):
        mode = RenderMode.parse(mode)
    if mode is RenderMode.MACHINE:
        return render_machine(diagnostics)
    return render_human(diagnostics, source, context_lines, show_help)


# ---------------------------------------------------------------------------
# Machine mode
# ---------------------------------------------------------------------------

def render_machine(diagnostics: list[Diagnostic]) -> str:
    report = {
        "diagnostics": [d.to_dict() for d in diagnostics],
        "summary": {
            "errorCount": sum(1 for d in diagnostics if d.severity is Severity.ERROR),
            "warningCount": sum(1 for d in diagnostics if d.severity is Severity.WARNING),
        },
    }
    return json.dumps(report, indent=2)


# ---------------------------------------------------------------------------
# Human mode
# ---------------------------------------------------------------------------

def render_human(
    diagnostics: list[Diagnostic],
    source: Sources = None,
    context_lines: int = 1,
    show_help: bool = True,
) -> str:
    blocks = [_render_one(d, source, context_lines, show_help) for d in diagnostics]
    errors = sum(1 for d in diagnostics if d.severity is Severity.ERROR)
    warnings = sum(1 for d in diagnostics if d.severity is Severity.WARNING)
    if diagnostics:
        blocks.append(f"{errors} error(s), {warnings} warning(s) emitted")
    return "\n\n".join(blocks) + ("\n" if blocks else "")


def _source_lines(source: Sources, file: str | None) -> list[str] | None:
    if source is None:
        return None
    if isinstance(source, str):
        return source.splitlines()
    text = source.get(file or "")
    return text.splitlines() if text is not None else None


def _render_one(d: Diagnostic, source: Sources, context_lines: int, show_help: bool) -> str:
    lines = [f"{d.severity.value}[{d.code}]: {d.message}"]
    spanned = [l for l in d.labels if l.span is not None]

    by_file: dict[str | None, list[Label]] = defaultdict(list)
    for label in spanned:
        by_file[label.span.file].append(label)

    files = list(by_file)
    all_lines = [l.span.line for l in spanned]
    width = len(str(max(all_lines) + context_lines)) if all_lines else 1
    gutter = " " * width

    unplaced: list[Label] = []
    for n, file in enumerate(files):
        labels = by_file[file]
        first = labels[0].span
        arrow = "-->" if n == 0 else ":::"
        lines.append(f"{gutter}{arrow} {file or '<input>'}:{first.line}:{first.column}")
        text = _source_lines(source, file)
        if text is None:
            unplaced.extend(labels)
            continue
        lines.append(f"{gutter} |")
        lines.extend(_snippet(labels, text, context_lines, width, unplaced))
        lines.append(f"{gutter} |")

    for label in unplaced:
        if label.message:
            s = label.span
            lines.append(f"{gutter} = label: {s.line}:{s.column}: {label.message}")
    for label in d.labels:
        if label.span is None and label.message:
            lines.append(f"{gutter} = label: {label.message}")
    if show_help:
        for s in d.suggestions:
            lines.append(f"{gutter} = help: {s.message}")
    for note in d.notes:
        lines.append(f"{gutter} = note: {note}")
    return "\n".join(lines)


def _snippet(labels: list[Label], text: list[str], context_lines: int,
             width: int, unplaced: list[Label]) -> list[str]:
    """Source window around every labelled line, with underlines beneath."""
    by_line: dict[int, list[Label]] = defaultdict(list)
    for label in labels:
        if 1 <= label.span.line <= len(text):
            by_line[label.span.line].append(label)
        else:
            unplaced.append(label)

    shown: set[int] = set()
    for line_no in by_line:
        low = max(1, line_no - context_lines)
        high = min(len(text), line_no + context_lines)
        shown.update(range(low, high + 1))

    out: list[str] = []
    previous = None
    for line_no in sorted(shown):
        if previous is not None and line_no > previous + 1:
            out.append("...")
        previous = line_no
        content = text[line_no - 1]
        out.append(f"{str(line_no).rjust(width)} | {content}".rstrip())
        for label in sorted(by_line.get(line_no, []), key=lambda l: l.span.column):
            out.append(f"{' ' * width} | {_underline(content, label)}".rstrip())
    return out


def _underline(content: str, label: Label) -> str:
    start = max(label.span.column - 1, 0)
    # Keep tabs so the carets line up under tab-indented source.
    pad = "".join(c if c == "\t" else " " for c in content[:start])
    pad += " " * (start - len(content[:start]))
    carets = "^" * max(label.span.length, 1)
    return f"{pad}{carets} {label.message}" if label.message else pad + carets
