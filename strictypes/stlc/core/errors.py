# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Structured errors raised by the loader and the strict codec.

Three tiers:
- `SchemaError`: fatal to loading, carries a source `Span`.
- `EncodeError`: the value handed to `encode` is outside the type's domain.
- `DecodeError`: untrusted input is malformed; carries the byte `offset`.

Every class pins a stable `reason_code` so CLIs and callers can match on it
without parsing messages.
"""

from __future__ import annotations

from typing import Any

from .diagnostics import Diagnostic
from .span import Span


class StrictTypesError(Exception):
	"""Base class for all strictypes errors."""

	reason_code = "strictypes"
	phase = "strictypes"

	def __init__(self, message: str) -> None:
		super().__init__(message)
		self.message = message

	def to_diagnostic(self) -> Diagnostic:
		return Diagnostic(message=self.message, code=self.reason_code, phase=self.phase)

	def to_dict(self) -> dict[str, Any]:
		return {"reason_code": self.reason_code, "message": self.message}


# --- tier 1: schema errors ---


class SchemaError(StrictTypesError):
	"""A schema could not be loaded; no partial Library is produced."""

	reason_code = "schema"
	phase = "loader"

	def __init__(self, message: str, *, span: Span | None = None) -> None:
		super().__init__(message)
		self.span = span if span is not None else Span()

	def __str__(self) -> str:
		if self.span.line is None:
			return self.message
		return f"{self.span.describe()}: {self.message}"

	def to_diagnostic(self) -> Diagnostic:
		return Diagnostic(message=self.message, code=self.reason_code, phase=self.phase, span=self.span)

	def to_dict(self) -> dict[str, Any]:
		out = super().to_dict()
		out.update({"file": self.span.file, "line": self.span.line, "column": self.span.column})
		return out


class SchemaSyntaxError(SchemaError):
	reason_code = "syntax"
	phase = "parser"


class DuplicateSymbolError(SchemaError):
	reason_code = "duplicate-symbol"

	def __init__(self, message: str, *, symbol: str, span: Span | None = None) -> None:
		super().__init__(message, span=span)
		self.symbol = symbol


class UnresolvedImportError(SchemaError):
	reason_code = "unresolved-import"

	def __init__(self, message: str, *, alias: str | None = None, span: Span | None = None) -> None:
		super().__init__(message, span=span)
		self.alias = alias


class UnresolvedTypeError(UnresolvedImportError):
	"""A type expression names neither a primitive, a declaration nor an import alias."""

	reason_code = "unresolved-type"


class CyclicDefinitionError(SchemaError):
	reason_code = "cyclic-definition"

	def __init__(self, message: str, *, cycle: list[str], span: Span | None = None) -> None:
		super().__init__(message, span=span)
		self.cycle = list(cycle)


class InvalidDefinitionError(SchemaError):
	reason_code = "invalid-definition"


class SemanticIdMismatchError(SchemaError):
	"""A declaration's computed semantic id disagrees with its pinned annotation."""

	reason_code = "semid-mismatch"
	phase = "semid"

	def __init__(self, message: str, *, expected: str, got: str, span: Span | None = None) -> None:
		super().__init__(message, span=span)
		self.expected = expected
		self.got = got

	def to_dict(self) -> dict[str, Any]:
		out = super().to_dict()
		out.update({"semid_expected": self.expected, "semid_got": self.got})
		return out


class ImportMismatchError(SemanticIdMismatchError):
	reason_code = "import-mismatch"


# --- tier 2: encode errors ---


class EncodeError(StrictTypesError, ValueError):
	reason_code = "encode"
	phase = "codec"

	def __init__(self, message: str, *, path: str = "") -> None:
		super().__init__(message)
		self.path = path

	def __str__(self) -> str:
		if self.path:
			return f"{self.path}: {self.message}"
		return self.message


class ValueOutOfRangeError(EncodeError):
	reason_code = "value-out-of-range"


class MissingFieldError(EncodeError):
	reason_code = "missing-field"


class UnexpectedFieldError(EncodeError):
	reason_code = "unexpected-field"


# --- tier 3: decode errors ---


class DecodeError(StrictTypesError, ValueError):
	reason_code = "decode"
	phase = "codec"

	def __init__(self, message: str, *, offset: int | None = None) -> None:
		super().__init__(message)
		self.offset = offset

	def __str__(self) -> str:
		if self.offset is None:
			return self.message
		return f"{self.message} (at byte offset {self.offset})"

	def to_dict(self) -> dict[str, Any]:
		out = super().to_dict()
		out["offset"] = self.offset
		return out


class TruncatedInputError(DecodeError):
	reason_code = "truncated-input"

	def __init__(self, message: str, *, offset: int, needed: int, available: int) -> None:
		super().__init__(message, offset=offset)
		self.needed = needed
		self.available = available


class InvalidDiscriminantError(DecodeError):
	reason_code = "invalid-discriminant"

	def __init__(self, message: str, *, offset: int, value: int) -> None:
		super().__init__(message, offset=offset)
		self.value = value


class DepthExceededError(DecodeError):
	reason_code = "depth-exceeded"


class BoundsExceededError(EncodeError, DecodeError):
	"""
	A collection length exceeds its declared maximum (or a caller cap).

	Raised by both directions: on encode `offset` is None and `path` names the
	value; on decode `offset` points at the length prefix.
	"""

	reason_code = "bounds-exceeded"

	def __init__(self, message: str, *, limit: int, got: int, offset: int | None = None, path: str = "") -> None:
		StrictTypesError.__init__(self, message)
		self.offset = offset
		self.path = path
		self.limit = limit
		self.got = got

	def __str__(self) -> str:
		if self.offset is not None:
			return DecodeError.__str__(self)
		return EncodeError.__str__(self)


__all__ = [
	"StrictTypesError",
	"SchemaError",
	"SchemaSyntaxError",
	"DuplicateSymbolError",
	"UnresolvedImportError",
	"UnresolvedTypeError",
	"CyclicDefinitionError",
	"InvalidDefinitionError",
	"SemanticIdMismatchError",
	"ImportMismatchError",
	"EncodeError",
	"ValueOutOfRangeError",
	"MissingFieldError",
	"UnexpectedFieldError",
	"DecodeError",
	"TruncatedInputError",
	"InvalidDiscriminantError",
	"DepthExceededError",
	"BoundsExceededError",
]
