from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass(frozen=True)
class Located:
	line: int
	column: int


@dataclass
class NamedTypeExpr:
	name: str
	loc: Located


@dataclass
class ArrayTypeExpr:
	element: "TypeExpr"
	length: int
	loc: Located


@dataclass
class ListTypeExpr:
	element: "TypeExpr"
	max_len: int
	loc: Located


@dataclass
class OptionTypeExpr:
	inner: "TypeExpr"
	loc: Located


TypeExpr = Union[NamedTypeExpr, ArrayTypeExpr, ListTypeExpr, OptionTypeExpr]


@dataclass
class FieldDecl:
	name: str
	type_expr: TypeExpr
	loc: Located


@dataclass
class RecordBody:
	fields: List[FieldDecl]


@dataclass
class VariantDecl:
	name: str
	discriminant: int
	payload: Optional[TypeExpr]
	loc: Located


@dataclass
class UnionBody:
	variants: List[VariantDecl]
	tag: Optional[str] = None
	tag_loc: Optional[Located] = None


@dataclass
class WrapperBody:
	type_expr: TypeExpr


DeclBody = Union[RecordBody, UnionBody, WrapperBody]


@dataclass
class TypeDecl:
	name: str
	body: DeclBody
	loc: Located
	pin: Optional[str] = None


@dataclass
class ImportDecl:
	type_name: str
	lib: str
	version: str
	loc: Located
	alias: Optional[str] = None
	pin: Optional[str] = None

	@property
	def local_name(self) -> str:
		return self.alias or self.type_name


@dataclass
class LibraryDecl:
	name: str
	version: str
	loc: Located
	imports: List[ImportDecl] = field(default_factory=list)
	types: List[TypeDecl] = field(default_factory=list)
