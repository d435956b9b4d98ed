"""Diagnostics returned to the provider host instead of raising."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, List, Optional

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"


@dataclass
class Diagnostic:
    """One problem reported by a resource operation.

    ``attribute_path`` names the configuration field the problem belongs to,
    or is None when it cannot be tied to one.
    """
    severity: str
    summary: str
    detail: str = ""
    attribute_path: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.severity == SEVERITY_ERROR

    def to_dict(self) -> dict:
        result = {"severity": self.severity, "summary": self.summary, "detail": self.detail}
        if self.attribute_path:
            result["attribute_path"] = self.attribute_path
        return result

    def __str__(self) -> str:
        prefix = f"{self.attribute_path}: " if self.attribute_path else ""
        text = f"{prefix}{self.summary}"
        if self.detail:
            text = f"{text}: {self.detail}"
        return text


class Diagnostics(list):
    """List of diagnostics with helpers for the common checks."""

    def has_error(self) -> bool:
        return any(d.is_error for d in self)

    def errors(self) -> List[Diagnostic]:
        return [d for d in self if d.is_error]

    def for_path(self, path: str) -> List[Diagnostic]:
        return [d for d in self if d.attribute_path == path]


def error_diag(err: Exception, summary: str, *args: Any) -> Diagnostics:
    """Wrap an exception as a single error diagnostic.

    Args:
        err: Underlying exception (its message becomes the detail)
        summary: printf-style summary
        *args: Arguments for ``summary``
    """
    return Diagnostics([Diagnostic(SEVERITY_ERROR, summary % args if args else summary, str(err))])


def error_diag_path(err: Exception, path: str, summary: str, *args: Any) -> Diagnostics:
    """Like ``error_diag`` but scoped to a configuration field."""
    return Diagnostics([
        Diagnostic(SEVERITY_ERROR, summary % args if args else summary, str(err), attribute_path=path)
    ])
