# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Closed type model shared by the loader, the semantic id engine and the codec.

A TypeDef is one of six structural shapes (Primitive, FixedArray, BoundedList,
Struct, Enum, Option) or one of two weak reference nodes (TypeRef for a type
declared in the same library, ExternRef for an imported type). Nodes are frozen
and form trees: a declaration owns its inline sub-types, named types are only
ever reached through references.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import ClassVar, Dict, Iterator, Optional, Tuple, Union


MAX_BOUND = 0xFFFF_FFFF
PRIMITIVE_WIDTHS = (8, 16, 24, 32, 64, 128, 256)
SIGNED_WIDTHS = (8, 16, 32, 64, 128, 256)


class TypeKind(enum.Enum):
	"""Kinds of type nodes; the first byte of every semantic id description."""

	PRIMITIVE = 0x00
	ARRAY = 0x01
	LIST = 0x02
	STRUCT = 0x03
	ENUM = 0x04
	OPTION = 0x05
	REF = 0x10
	EXTERN = 0x11


@dataclass(frozen=True)
class Primitive:
	"""Fixed-width integer (little-endian, two's complement when signed)."""

	kind: ClassVar[TypeKind] = TypeKind.PRIMITIVE

	bits: int
	signed: bool = False

	@property
	def name(self) -> str:
		return f"{'I' if self.signed else 'U'}{self.bits}"

	@property
	def byte_len(self) -> int:
		return self.bits // 8

	@property
	def min_value(self) -> int:
		return -(1 << (self.bits - 1)) if self.signed else 0

	@property
	def max_value(self) -> int:
		return (1 << (self.bits - 1)) - 1 if self.signed else (1 << self.bits) - 1


@dataclass(frozen=True)
class FixedArray:
	kind: ClassVar[TypeKind] = TypeKind.ARRAY

	element: "TypeDef"
	length: int


@dataclass(frozen=True)
class BoundedList:
	"""Length-prefixed sequence; the prefix width follows from `max_len`."""

	kind: ClassVar[TypeKind] = TypeKind.LIST

	element: "TypeDef"
	max_len: int

	@property
	def prefix_len(self) -> int:
		return length_prefix_width(self.max_len)


@dataclass(frozen=True)
class Field:
	name: str
	ty: "TypeDef"


@dataclass(frozen=True)
class Struct:
	kind: ClassVar[TypeKind] = TypeKind.STRUCT

	fields: Tuple[Field, ...]

	def field_names(self) -> list[str]:
		return [f.name for f in self.fields]


@dataclass(frozen=True)
class Variant:
	name: str
	discriminant: int
	payload: Optional["TypeDef"] = None


@dataclass(frozen=True)
class Enum:
	"""Tagged union with explicit discriminants encoded at the width of `tag`."""

	kind: ClassVar[TypeKind] = TypeKind.ENUM

	variants: Tuple[Variant, ...]
	tag: Primitive = Primitive(8)
	_by_name: Dict[str, Variant] = field(init=False, repr=False, compare=False, hash=False)
	_by_disc: Dict[int, Variant] = field(init=False, repr=False, compare=False, hash=False)

	def __post_init__(self) -> None:
		object.__setattr__(self, "_by_name", {v.name: v for v in self.variants})
		object.__setattr__(self, "_by_disc", {v.discriminant: v for v in self.variants})

	def variant(self, name: str) -> Optional[Variant]:
		return self._by_name.get(name)

	def by_discriminant(self, disc: int) -> Optional[Variant]:
		return self._by_disc.get(disc)


@dataclass(frozen=True)
class Option:
	"""One presence byte, then the inner value when present."""

	kind: ClassVar[TypeKind] = TypeKind.OPTION

	inner: "TypeDef"


@dataclass(frozen=True)
class TypeRef:
	"""Weak link to a type declared in the same library."""

	kind: ClassVar[TypeKind] = TypeKind.REF

	name: str


@dataclass(frozen=True)
class ExternRef:
	"""Weak link to an imported type: (import alias, library identity, exported name)."""

	kind: ClassVar[TypeKind] = TypeKind.EXTERN

	alias: str
	lib: str
	version: str
	type_name: str


TypeDef = Union[Primitive, FixedArray, BoundedList, Struct, Enum, Option, TypeRef, ExternRef]

PRIMITIVES: Dict[str, Primitive] = {}
for _bits in PRIMITIVE_WIDTHS:
	PRIMITIVES[f"U{_bits}"] = Primitive(_bits, signed=False)
for _bits in SIGNED_WIDTHS:
	PRIMITIVES[f"I{_bits}"] = Primitive(_bits, signed=True)
U8 = PRIMITIVES["U8"]


def length_prefix_width(max_len: int) -> int:
	"""Minimal prefix width (bytes) able to represent `max_len`."""
	if max_len <= 0xFF:
		return 1
	if max_len <= 0xFFFF:
		return 2
	return 4


def children(ty: TypeDef) -> Iterator[TypeDef]:
	"""Direct sub-types of `ty` in declaration order."""
	if isinstance(ty, (FixedArray, BoundedList)):
		yield ty.element
	elif isinstance(ty, Option):
		yield ty.inner
	elif isinstance(ty, Struct):
		for f in ty.fields:
			yield f.ty
	elif isinstance(ty, Enum):
		for v in ty.variants:
			if v.payload is not None:
				yield v.payload


def iter_refs(ty: TypeDef) -> Iterator[tuple[Union[TypeRef, ExternRef], bool]]:
	"""
	Yield every reference reachable inside `ty` (without following references),
	paired with whether the path to it passes through an Option or BoundedList.

	The walk uses an explicit stack and preserves left-to-right order.
	"""
	stack: list[tuple[TypeDef, bool]] = [(ty, False)]
	while stack:
		node, guarded = stack.pop()
		if isinstance(node, (TypeRef, ExternRef)):
			yield node, guarded
			continue
		inner_guarded = guarded or isinstance(node, (Option, BoundedList))
		for child in reversed(list(children(node))):
			stack.append((child, inner_guarded))


def format_type(ty: TypeDef) -> str:
	"""Render a type expression back to schema syntax (inline form)."""
	if isinstance(ty, Primitive):
		return ty.name
	if isinstance(ty, TypeRef):
		return ty.name
	if isinstance(ty, ExternRef):
		return ty.alias
	if isinstance(ty, FixedArray):
		return f"[{format_type(ty.element)} ^ {ty.length}]"
	if isinstance(ty, BoundedList):
		return f"[{format_type(ty.element)} ^ ..{ty.max_len:#x}]"
	if isinstance(ty, Option):
		return f"{format_type(ty.inner)}?"
	if isinstance(ty, Struct):
		return ", ".join(f"{f.name} {format_type(f.ty)}" for f in ty.fields)
	if isinstance(ty, Enum):
		arms = []
		for v in ty.variants:
			payload = f"({format_type(v.payload)})" if v.payload is not None else ""
			arms.append(f"{v.name}{payload} = {v.discriminant}")
		prefix = "" if ty.tag == U8 else f"<{ty.tag.name}> "
		return prefix + " | ".join(arms)
	raise TypeError(f"unknown type node {type(ty).__name__}")


__all__ = [
	"MAX_BOUND",
	"PRIMITIVES",
	"PRIMITIVE_WIDTHS",
	"SIGNED_WIDTHS",
	"U8",
	"TypeKind",
	"TypeDef",
	"Primitive",
	"FixedArray",
	"BoundedList",
	"Field",
	"Struct",
	"Variant",
	"Enum",
	"Option",
	"TypeRef",
	"ExternRef",
	"children",
	"iter_refs",
	"format_type",
	"length_prefix_width",
]
