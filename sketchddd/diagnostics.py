"""Diagnostics and the aggregate validation result.

Validator passes never raise for invalid models: everything they find is a
Diagnostic. A ValidationResult is ok exactly when no Error is present;
Warnings and Hints are reported but never block code generation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .types import Span


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    HINT = "hint"


@dataclass(frozen=True)
class Label:
    """A source span annotated with a short message."""
    span: Span | None
    message: str = ""


@dataclass(frozen=True)
class Suggestion:
    """A proposed fix: human text plus the literal replacement."""
    message: str
    replacement: str


@dataclass
class Diagnostic:
    severity: Severity
    code: str
    message: str
    labels: list[Label] = field(default_factory=list)
    suggestions: list[Suggestion] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    context: str | None = None  # owning bounded context, if any

    @classmethod
    def from_code(cls, info, message: str, span: Span | None = None,
                  label: str = "", context: str | None = None) -> Diagnostic:
        """Build a diagnostic whose code and severity come from a registry entry."""
        labels = [Label(span, label)] if span is not None or label else []
        return cls(severity=info.severity, code=info.code, message=message,
                   labels=labels, context=context)

    @property
    def primary_span(self) -> Span | None:
        for label in self.labels:
            if label.span is not None:
                return label.span
        return None

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def suggest(self, message: str, replacement: str) -> Diagnostic:
        self.suggestions.append(Suggestion(message, replacement))
        return self

    def note(self, text: str) -> Diagnostic:
        self.notes.append(text)
        return self

    def to_dict(self) -> dict[str, Any]:
        span = self.primary_span
        return {
            "code": self.code,
            "severity": self.severity.value,
            "message": self.message,
            "location": _span_dict(span) if span else None,
            "labels": [
                {"span": _span_dict(l.span) if l.span else None, "message": l.message}
                for l in self.labels
            ],
            "suggestions": [
                {"message": s.message, "replacement": s.replacement}
                for s in self.suggestions
            ],
            "notes": list(self.notes),
        }

    def __repr__(self) -> str:
        return f"Diagnostic({self.severity.value}[{self.code}]: {self.message})"


def _span_dict(span: Span) -> dict[str, Any]:
    return {
        "file": span.file,
        "line": span.line,
        "column": span.column,
        "length": span.length,
    }


@dataclass
class ValidationResult:
    """Everything the validator found, in pass order."""
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def extend(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics.extend(diagnostics)

    def is_ok(self) -> bool:
        """True iff no Error-severity diagnostic is present."""
        return self.error_count == 0

    def has_issues(self) -> bool:
        return bool(self.diagnostics)

    @property
    def ok(self) -> bool:
        return self.is_ok()

    def _count(self, severity: Severity) -> int:
        return sum(1 for d in self.diagnostics if d.severity is severity)

    @property
    def error_count(self) -> int:
        return self._count(Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return self._count(Severity.WARNING)

    @property
    def hint_count(self) -> int:
        return self._count(Severity.HINT)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.WARNING]

    def with_code(self, code: str) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.code == code]

    def codes(self) -> list[str]:
        return [d.code for d in self.diagnostics]

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.is_ok(),
            "errorCount": self.error_count,
            "warningCount": self.warning_count,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }

    def summary(self) -> str:
        lines = []
        status = "OK" if self.is_ok() else "INVALID"
        lines.append(f"Validation: {status}")
        lines.append("-" * 50)
        if self.diagnostics:
            lines.append(
                f"  {self.error_count} error(s), {self.warning_count} warning(s), "
                f"{self.hint_count} hint(s)"
            )
            for d in self.diagnostics:
                where = f"[{d.context}] " if d.context else ""
                lines.append(f"    - {d.severity.value}[{d.code}] {where}{d.message}")
        else:
            lines.append("  No issues found.")
        return "\n".join(lines)
