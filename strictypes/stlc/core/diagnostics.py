"""
Common diagnostic structure for the loader and the CLIs.

A message plus optional span/metadata; `to_json` renders the structured form
printed by `--json` modes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .span import Span


@dataclass
class Diagnostic:
	"""Represents a schema/codec diagnostic (error/warning)."""

	message: str
	code: str | None = None
	# Phase label: "parser", "loader", "semid", "codec", "cache".
	phase: str | None = None
	severity: str = "error"
	span: Span = field(default_factory=Span)  # Source location (Span() denotes unknown).
	notes: list[str] = field(default_factory=list)

	def __post_init__(self) -> None:
		if self.span is None:  # type: ignore[unreachable]
			self.span = Span()

	def to_json(self, *, default_file: str | None = None) -> dict[str, Any]:
		return {
			"phase": self.phase,
			"code": self.code,
			"message": self.message,
			"severity": self.severity,
			"file": self.span.file or default_file,
			"line": self.span.line,
			"column": self.span.column,
			"notes": list(self.notes),
		}

	def format_human(self) -> str:
		head = f"{self.span.describe()}: {self.severity}"
		if self.code:
			head += f"[{self.code}]"
		lines = [f"{head}: {self.message}"]
		lines.extend(f"  note: {n}" for n in self.notes)
		return "\n".join(lines)


__all__ = ["Diagnostic"]
