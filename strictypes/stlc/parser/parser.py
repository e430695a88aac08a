from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from lark import Lark, Token, Tree

from .ast import (
	ArrayTypeExpr,
	DeclBody,
	FieldDecl,
	ImportDecl,
	LibraryDecl,
	ListTypeExpr,
	Located,
	NamedTypeExpr,
	OptionTypeExpr,
	RecordBody,
	TypeDecl,
	TypeExpr,
	UnionBody,
	VariantDecl,
	WrapperBody,
)

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

# Inline nesting cap; lowering, ids and the codec walk inline types recursively.
MAX_TYPE_NESTING = 256


_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="basic",
	start="start",
	propagate_positions=True,
	maybe_placeholders=False,
)


class SchemaBuildError(ValueError):
	"""
	User-facing error detected while building the AST (not by the grammar),
	e.g. a malformed version number.

	The adapter in `parser/__init__.py` turns it into a `SchemaSyntaxError`.
	"""

	def __init__(self, message: str, *, loc: Located | None) -> None:
		super().__init__(message)
		self.loc = loc


class TypeNestingError(SchemaBuildError):
	"""An inline type expression exceeds `MAX_TYPE_NESTING`."""


def parse_schema(source: str) -> LibraryDecl:
	tree = _PARSER.parse(source)
	return _build_library(tree)


def _build_library(tree: Tree) -> LibraryDecl:
	header = next(c for c in tree.children if isinstance(c, Tree) and _name(c) == "header")
	name_tok = next(c for c in header.children if isinstance(c, Token) and c.type == "TYPE_NAME")
	version_node = next(c for c in header.children if isinstance(c, Tree) and _name(c) == "version")
	lib = LibraryDecl(name=name_tok.value, version=_build_version(version_node), loc=_loc(header))
	for child in tree.children:
		if not isinstance(child, Tree):
			continue
		kind = _name(child)
		if kind == "import_decl":
			lib.imports.append(_build_import_decl(child))
		elif kind == "type_decl":
			lib.types.append(_build_type_decl(child))
	return lib


def _build_version(tree: Tree) -> str:
	parts: List[str] = []
	for tok in tree.children:
		if not isinstance(tok, Token):
			continue
		text = tok.value.replace("_", "")
		if not text.isdigit():
			raise SchemaBuildError(f"invalid version component '{tok.value}'", loc=_loc_from_token(tok))
		parts.append(str(int(text)))
	return ".".join(parts)


def _build_pin(tree: Tree | None) -> Optional[str]:
	if tree is None:
		return None
	tok = next(c for c in tree.children if isinstance(c, Token) and c.type == "PIN")
	return tok.value[2:].split("#", 1)[0].strip()


def _build_import_decl(tree: Tree) -> ImportDecl:
	"""
	Grammar:
	  import_decl: "import" TYPE_NAME import_alias? "from" TYPE_NAME version pin?
	"""
	names = [c for c in tree.children if isinstance(c, Token) and c.type == "TYPE_NAME"]
	alias_node = next((c for c in tree.children if isinstance(c, Tree) and _name(c) == "import_alias"), None)
	version_node = next(c for c in tree.children if isinstance(c, Tree) and _name(c) == "version")
	pin_node = next((c for c in tree.children if isinstance(c, Tree) and _name(c) == "pin"), None)
	alias = None
	if alias_node is not None:
		alias = next(c for c in alias_node.children if isinstance(c, Token)).value
	return ImportDecl(
		type_name=names[0].value,
		lib=names[1].value,
		version=_build_version(version_node),
		loc=_loc(tree),
		alias=alias,
		pin=_build_pin(pin_node),
	)


def _build_type_decl(tree: Tree) -> TypeDecl:
	"""
	Grammar:
	  type_decl: "data" TYPE_NAME ":" body pin?
	"""
	name_tok = next(c for c in tree.children if isinstance(c, Token) and c.type == "TYPE_NAME")
	body_node = next(c for c in tree.children if isinstance(c, Tree) and _name(c) != "pin")
	pin_node = next((c for c in tree.children if isinstance(c, Tree) and _name(c) == "pin"), None)
	return TypeDecl(name=name_tok.value, body=_build_body(body_node), loc=_loc(tree), pin=_build_pin(pin_node))


def _build_body(tree: Tree) -> DeclBody:
	kind = _name(tree)
	if kind == "record":
		return RecordBody(fields=[_build_field(c) for c in tree.children if isinstance(c, Tree)])
	if kind == "union":
		return _build_union(tree)
	if kind == "wrapper":
		inner = next(c for c in tree.children if isinstance(c, Tree))
		return WrapperBody(type_expr=_build_type_expr(inner))
	raise SchemaBuildError(f"unexpected declaration body '{kind}'", loc=_loc(tree))


def _build_field(tree: Tree) -> FieldDecl:
	name_tok = next(c for c in tree.children if isinstance(c, Token) and c.type == "FIELD_NAME")
	type_node = next(c for c in tree.children if isinstance(c, Tree))
	return FieldDecl(name=name_tok.value, type_expr=_build_type_expr(type_node), loc=_loc_from_token(name_tok))


def _build_union(tree: Tree) -> UnionBody:
	body = UnionBody(variants=[])
	for child in tree.children:
		if not isinstance(child, Tree):
			continue
		if _name(child) == "tag_width":
			tok = next(c for c in child.children if isinstance(c, Token))
			body.tag = tok.value
			body.tag_loc = _loc_from_token(tok)
		elif _name(child) == "variant":
			body.variants.append(_build_variant(child))
	return body


def _build_variant(tree: Tree) -> VariantDecl:
	name_tok = next(c for c in tree.children if isinstance(c, Token) and c.type == "FIELD_NAME")
	int_tok = next(c for c in tree.children if isinstance(c, Token) and c.type == "INT")
	payload_node = next((c for c in tree.children if isinstance(c, Tree) and _name(c) == "variant_payload"), None)
	payload = None
	if payload_node is not None:
		payload = _build_type_expr(next(c for c in payload_node.children if isinstance(c, Tree)))
	return VariantDecl(
		name=name_tok.value,
		discriminant=_parse_int(int_tok),
		payload=payload,
		loc=_loc_from_token(name_tok),
	)


def _build_type_expr(tree: Tree, depth: int = 1) -> TypeExpr:
	if depth > MAX_TYPE_NESTING:
		raise TypeNestingError(f"type expression is nested deeper than {MAX_TYPE_NESTING} levels", loc=_loc(tree))
	kind = _name(tree)
	if kind == "named_type":
		tok = tree.children[0]
		return NamedTypeExpr(name=tok.value, loc=_loc_from_token(tok))
	if kind == "option_type":
		inner = next(c for c in tree.children if isinstance(c, Tree))
		return OptionTypeExpr(inner=_build_type_expr(inner, depth + 1), loc=_loc(tree))
	if kind in {"fixed_array", "bounded_list"}:
		elem = next(c for c in tree.children if isinstance(c, Tree))
		int_tok = next(c for c in tree.children if isinstance(c, Token) and c.type == "INT")
		if kind == "fixed_array":
			return ArrayTypeExpr(element=_build_type_expr(elem, depth + 1), length=_parse_int(int_tok), loc=_loc(tree))
		return ListTypeExpr(element=_build_type_expr(elem, depth + 1), max_len=_parse_int(int_tok), loc=_loc(tree))
	raise SchemaBuildError(f"unexpected type expression '{kind}'", loc=_loc(tree))


def _parse_int(tok: Token) -> int:
	text = tok.value.replace("_", "")
	if text.startswith(("0x", "0X")):
		return int(text[2:], 16)
	return int(text, 10)


def _loc(tree: Tree) -> Located:
	meta = tree.meta
	return Located(line=meta.line, column=meta.column)


def _loc_from_token(token: Token) -> Located:
	return Located(line=token.line, column=token.column)


def _name(node: Tree | Token) -> str:
	if isinstance(node, Tree):
		data = node.data
		if isinstance(data, Token):
			return data.value
		return data
	if isinstance(node, Token):
		return node.type
	return str(node)
