# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Schema parser adapter.

Parses schema source text into the AST in `parser.ast` and converts lark's
exceptions into positioned `SchemaSyntaxError`s so callers never see raw
parser exceptions.
"""

from __future__ import annotations

from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken

from strictypes.stlc.core.errors import InvalidDefinitionError, SchemaSyntaxError
from strictypes.stlc.core.span import Span

from . import ast as parser_ast
from . import parser as _parser


def _describe_unexpected(err: UnexpectedInput) -> str:
	if isinstance(err, UnexpectedEOF):
		return "unexpected end of input"
	if isinstance(err, UnexpectedToken):
		tok = err.token
		if tok.type == "$END":
			return "unexpected end of input"
		expected = sorted(err.expected or [])
		msg = f"unexpected token '{tok.value}'"
		if expected:
			msg += f" (expected one of: {', '.join(expected)})"
		return msg
	if isinstance(err, UnexpectedCharacters):
		return f"unexpected character '{err.char}'"
	return "syntax error"


def parse_schema_source(source: str, *, file: str | None = None) -> parser_ast.LibraryDecl:
	"""
	Parse schema text; raise `SchemaSyntaxError` (with position) on failure.

	Inline type expressions nested past `MAX_TYPE_NESTING` raise
	`InvalidDefinitionError`.
	"""
	try:
		return _parser.parse_schema(source)
	except UnexpectedInput as err:
		line = getattr(err, "line", None)
		column = getattr(err, "column", None)
		if line is not None and line < 1:
			line = None
			column = None
		raise SchemaSyntaxError(_describe_unexpected(err), span=Span(file=file, line=line, column=column)) from err
	except _parser.TypeNestingError as err:
		raise InvalidDefinitionError(str(err), span=Span.from_loc(err.loc, file=file)) from err
	except _parser.SchemaBuildError as err:
		raise SchemaSyntaxError(str(err), span=Span.from_loc(err.loc, file=file)) from err


__all__ = ["parse_schema_source", "parser_ast"]
