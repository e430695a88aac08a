# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Turn a parsed schema into an immutable `Library`.

Steps (all-or-nothing: any failure raises before a Library exists):
1. symbol table: declarations, import aliases and reserved primitive names;
2. imports: resolved through the caller's `LibraryIndex`, pins verified;
3. lowering: AST bodies become TypeDef trees, shape invariants checked;
4. references/cycles: explicit worklist over the reference graph; a cycle is
   legal only when one of its edges passes through an Option or BoundedList;
5. semantic ids: computed eagerly in dependency order, local pins verified.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Tuple

from strictypes.stlc.core.bech32 import Bech32Error
from strictypes.stlc.core.errors import (
	CyclicDefinitionError,
	DuplicateSymbolError,
	ImportMismatchError,
	InvalidDefinitionError,
	SchemaSyntaxError,
	SemanticIdMismatchError,
	UnresolvedImportError,
	UnresolvedTypeError,
)
from strictypes.stlc.core.library import ImportEntry, Library, LibraryIndex, TypeRegistry
from strictypes.stlc.core.semid import SemanticId, SemanticIdEngine
from strictypes.stlc.core.span import Span
from strictypes.stlc.core.types_core import (
	MAX_BOUND,
	PRIMITIVES,
	BoundedList,
	Enum,
	ExternRef,
	Field,
	FixedArray,
	Option,
	Struct,
	TypeDef,
	TypeRef,
	Variant,
	children,
	iter_refs,
)
from strictypes.stlc.parser import ast as A

logger = logging.getLogger(__name__)

_MAX_TAG_BITS = 64


@dataclass(frozen=True)
class LoaderOptions:
	"""
	Loader configuration.

	strict_pins: a declaration whose `-- semid:` annotation disagrees with its
	  computed id fails the load. When False the mismatch is logged as a warning.
	  Import pins are always enforced.
	"""

	strict_pins: bool = True


def _parse_pin(text: str, span: Span) -> SemanticId:
	try:
		return SemanticId.parse(text)
	except (ValueError, Bech32Error) as err:
		raise SchemaSyntaxError(f"invalid semantic id annotation '{text}'", span=span) from err


class LibraryBuilder:
	"""Single-use builder for one parsed schema."""

	def __init__(
		self,
		decl: A.LibraryDecl,
		*,
		index: LibraryIndex,
		options: LoaderOptions,
		file: str | None = None,
	) -> None:
		self._decl = decl
		self._index = index
		self._options = options
		self._file = file
		self._decls: Dict[str, A.TypeDecl] = {}
		self._import_decls: Dict[str, A.ImportDecl] = {}

	def _span(self, loc: A.Located | None) -> Span:
		return Span.from_loc(loc, file=self._file)

	def build(self) -> Library:
		self._collect_symbols()
		imports, libraries = self._resolve_imports()
		types = {name: self._lower_decl(d) for name, d in self._decls.items()}
		registry = TypeRegistry(types, imports, libraries)
		order = self._check_references(types)
		self._check_options(registry)
		ids = self._compute_ids(registry, order)
		lib = Library(self._decl.name, self._decl.version, registry.with_ids(ids), file=self._file)
		logger.debug(
			"loaded library %s %s: %d types, %d imports, id %s",
			lib.name,
			lib.version,
			len(types),
			len(imports),
			lib.library_id,
		)
		return lib

	# --- symbols & imports ---

	def _collect_symbols(self) -> None:
		for imp in self._decl.imports:
			name = imp.local_name
			if name in PRIMITIVES:
				raise DuplicateSymbolError(
					f"import alias '{name}' shadows a built-in primitive", symbol=name, span=self._span(imp.loc)
				)
			if name in self._import_decls:
				raise DuplicateSymbolError(
					f"duplicate import alias '{name}'", symbol=name, span=self._span(imp.loc)
				)
			self._import_decls[name] = imp
		for td in self._decl.types:
			name = td.name
			if name in PRIMITIVES:
				raise DuplicateSymbolError(
					f"type '{name}' shadows a built-in primitive", symbol=name, span=self._span(td.loc)
				)
			if name in self._decls or name in self._import_decls:
				raise DuplicateSymbolError(f"duplicate type name '{name}'", symbol=name, span=self._span(td.loc))
			self._decls[name] = td

	def _resolve_imports(self) -> Tuple[Dict[str, ImportEntry], Dict[Tuple[str, str], Library]]:
		entries: Dict[str, ImportEntry] = {}
		libraries: Dict[Tuple[str, str], Library] = {}
		for alias, imp in self._import_decls.items():
			span = self._span(imp.loc)
			lib = self._index.get(imp.lib, imp.version)
			if lib is None:
				raise UnresolvedImportError(
					f"library '{imp.lib} {imp.version}' is not available for import '{alias}'",
					alias=alias,
					span=span,
				)
			if imp.type_name not in lib:
				raise UnresolvedImportError(
					f"library '{imp.lib} {imp.version}' has no type '{imp.type_name}'",
					alias=alias,
					span=span,
				)
			got = lib.semid(imp.type_name)
			pinned = None
			if imp.pin is not None:
				pinned = _parse_pin(imp.pin, span)
				if pinned != got:
					raise ImportMismatchError(
						f"imported type '{imp.lib}.{imp.type_name}' has semantic id {got}, pinned {pinned}",
						expected=pinned.hex(),
						got=got.hex(),
						span=span,
					)
			entries[alias] = ImportEntry(
				alias=alias,
				lib=imp.lib,
				version=imp.version,
				type_name=imp.type_name,
				semid=got,
				pinned=pinned,
			)
			libraries[lib.key] = lib
		return entries, libraries

	# --- lowering ---

	def _lower_decl(self, td: A.TypeDecl) -> TypeDef:
		body = td.body
		if isinstance(body, A.WrapperBody):
			return self._lower_expr(body.type_expr)
		if isinstance(body, A.RecordBody):
			fields: List[Field] = []
			seen: set[str] = set()
			for f in body.fields:
				if f.name in seen:
					raise DuplicateSymbolError(
						f"duplicate field '{f.name}' in '{td.name}'", symbol=f.name, span=self._span(f.loc)
					)
				seen.add(f.name)
				fields.append(Field(name=f.name, ty=self._lower_expr(f.type_expr)))
			return Struct(fields=tuple(fields))
		if isinstance(body, A.UnionBody):
			return self._lower_union(td, body)
		raise TypeError(f"unknown declaration body {type(body).__name__}")

	def _lower_union(self, td: A.TypeDecl, body: A.UnionBody) -> Enum:
		tag = PRIMITIVES["U8"]
		if body.tag is not None:
			candidate = PRIMITIVES.get(body.tag)
			if candidate is None or candidate.signed or candidate.bits > _MAX_TAG_BITS:
				raise InvalidDefinitionError(
					f"union '{td.name}' tag must be an unsigned primitive of at most {_MAX_TAG_BITS} bits, got '{body.tag}'",
					span=self._span(body.tag_loc),
				)
			tag = candidate
		variants: List[Variant] = []
		names: set[str] = set()
		discs: Dict[int, str] = {}
		for v in body.variants:
			span = self._span(v.loc)
			if v.name in names:
				raise DuplicateSymbolError(f"duplicate variant '{v.name}' in '{td.name}'", symbol=v.name, span=span)
			names.add(v.name)
			if v.discriminant > tag.max_value:
				raise InvalidDefinitionError(
					f"discriminant {v.discriminant} of '{td.name}::{v.name}' does not fit {tag.name}", span=span
				)
			if v.discriminant in discs:
				raise InvalidDefinitionError(
					f"discriminant {v.discriminant} of '{td.name}::{v.name}' already used by '{discs[v.discriminant]}'",
					span=span,
				)
			discs[v.discriminant] = v.name
			payload = self._lower_expr(v.payload) if v.payload is not None else None
			variants.append(Variant(name=v.name, discriminant=v.discriminant, payload=payload))
		return Enum(variants=tuple(variants), tag=tag)

	def _lower_expr(self, expr: A.TypeExpr) -> TypeDef:
		if isinstance(expr, A.NamedTypeExpr):
			prim = PRIMITIVES.get(expr.name)
			if prim is not None:
				return prim
			if expr.name in self._decls:
				return TypeRef(expr.name)
			imp = self._import_decls.get(expr.name)
			if imp is not None:
				return ExternRef(alias=expr.name, lib=imp.lib, version=imp.version, type_name=imp.type_name)
			raise UnresolvedTypeError(f"unknown type '{expr.name}'", alias=expr.name, span=self._span(expr.loc))
		if isinstance(expr, A.ArrayTypeExpr):
			self._check_bound(expr.length, "array length", expr.loc)
			if expr.length == 0:
				# Keeps the minimum encoded size of every type above zero.
				raise InvalidDefinitionError("fixed array length must be at least 1", span=self._span(expr.loc))
			return FixedArray(element=self._lower_expr(expr.element), length=expr.length)
		if isinstance(expr, A.ListTypeExpr):
			self._check_bound(expr.max_len, "list bound", expr.loc)
			return BoundedList(element=self._lower_expr(expr.element), max_len=expr.max_len)
		if isinstance(expr, A.OptionTypeExpr):
			return Option(inner=self._lower_expr(expr.inner))
		raise TypeError(f"unknown type expression {type(expr).__name__}")

	def _check_bound(self, value: int, what: str, loc: A.Located) -> None:
		if value > MAX_BOUND:
			raise InvalidDefinitionError(f"{what} {value:#x} exceeds the maximum {MAX_BOUND:#x}", span=self._span(loc))

	# --- reference graph ---

	def _edges(self, ty: TypeDef, *, unguarded_only: bool) -> Iterator[str]:
		for ref, guarded in iter_refs(ty):
			if isinstance(ref, TypeRef) and not (unguarded_only and guarded):
				yield ref.name

	def _check_references(self, types: Dict[str, TypeDef]) -> List[str]:
		"""
		Reject unguarded cycles and return every declaration in dependency order
		(dependencies first). Both walks use an explicit stack.
		"""
		WHITE, GRAY, BLACK = 0, 1, 2
		color = {name: WHITE for name in types}
		for root in types:
			if color[root] != WHITE:
				continue
			stack: List[Tuple[str, Iterator[str]]] = [(root, self._edges(types[root], unguarded_only=True))]
			color[root] = GRAY
			while stack:
				node, it = stack[-1]
				nxt = next(it, None)
				if nxt is None:
					color[node] = BLACK
					stack.pop()
					continue
				if color[nxt] == GRAY:
					path = [n for n, _ in stack]
					cycle = path[path.index(nxt):] + [nxt]
					raise CyclicDefinitionError(
						f"type '{nxt}' depends on itself without an optional or bounded indirection: {' -> '.join(cycle)}",
						cycle=cycle,
						span=self._span(self._decls[nxt].loc),
					)
				if color[nxt] == WHITE:
					color[nxt] = GRAY
					stack.append((nxt, self._edges(types[nxt], unguarded_only=True)))

		order: List[str] = []
		visited: set[str] = set()
		for root in types:
			if root in visited:
				continue
			visited.add(root)
			stack = [(root, self._edges(types[root], unguarded_only=False))]
			while stack:
				node, it = stack[-1]
				nxt = next(it, None)
				if nxt is None:
					order.append(node)
					stack.pop()
					continue
				if nxt not in visited:
					visited.add(nxt)
					stack.append((nxt, self._edges(types[nxt], unguarded_only=False)))
		return order

	def _check_options(self, registry: TypeRegistry) -> None:
		"""`T??` has no unambiguous value form; reject directly nested options."""
		for name, ty in registry.types.items():
			stack: List[TypeDef] = [ty]
			while stack:
				node = stack.pop()
				if isinstance(node, Option):
					inner, _ = registry.resolve(node.inner)
					if isinstance(inner, Option):
						raise InvalidDefinitionError(
							f"type '{name}' nests an option directly inside another option",
							span=self._span(self._decls[name].loc),
						)
				stack.extend(children(node))

	# --- semantic ids ---

	def _compute_ids(self, registry: TypeRegistry, order: List[str]) -> Dict[str, SemanticId]:
		engine = SemanticIdEngine(registry)
		computed = {name: engine.type_id(name) for name in order}
		ids = {name: computed[name] for name in registry.types}
		for name, td in self._decls.items():
			if td.pin is None:
				continue
			span = self._span(td.loc)
			pinned = _parse_pin(td.pin, span)
			got = ids[name]
			if pinned == got:
				continue
			if self._options.strict_pins:
				raise SemanticIdMismatchError(
					f"type '{name}' has semantic id {got}, annotation says {pinned}",
					expected=pinned.hex(),
					got=got.hex(),
					span=span,
				)
			logger.warning("%s: type '%s' has semantic id %s, annotation says %s", span.describe(), name, got, pinned)
		return ids


__all__ = ["LibraryBuilder", "LoaderOptions"]
