# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Strict codec: canonical, deterministic binary layout per type shape.

Layout rules:
- Primitive: little-endian at the declared width (two's complement if signed).
- FixedArray: elements in order, no length prefix.
- BoundedList: length prefix of the minimal width for the declared maximum
  (1, 2 or 4 bytes), then the elements.
- Struct: fields in declared order, no padding, no tags.
- Enum: discriminant at the tag width, then the variant payload (if any).
- Option: presence byte 0x00/0x01, then the inner value when present.

Decoding treats input as untrusted: every read is bounds-checked, and a length
prefix is validated against the declared maximum, the caller cap and the
remaining buffer before anything is allocated for it.

A `StrictCodec` only memoizes minimum encoded sizes after construction and may
be shared between threads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from strictypes.stlc.core.errors import (
	BoundsExceededError,
	DecodeError,
	DepthExceededError,
	InvalidDiscriminantError,
	MissingFieldError,
	TruncatedInputError,
	UnexpectedFieldError,
	ValueOutOfRangeError,
)
from strictypes.stlc.core.library import Library, TypeRegistry
from strictypes.stlc.core.types_core import (
	BoundedList,
	Enum,
	ExternRef,
	FixedArray,
	Option,
	Primitive,
	Struct,
	TypeDef,
	TypeRef,
	iter_refs,
)

from .values import EnumValue, is_byte_element

TypeSpec = Union[str, TypeDef]


@dataclass(frozen=True)
class DecodeOptions:
	"""
	Caller limits for decoding untrusted input.

	max_elements: cap on any single length-prefixed collection (None: only the
	  declared maximum applies).
	max_depth: cap on value nesting; bounds recursion for recursive types.
	"""

	max_elements: Optional[int] = None
	max_depth: int = 64


_DEFAULT_OPTIONS = DecodeOptions()


class _Reader:
	__slots__ = ("_view", "pos")

	def __init__(self, data: bytes | bytearray | memoryview, offset: int) -> None:
		self._view = memoryview(data)
		self.pos = offset

	@property
	def remaining(self) -> int:
		return len(self._view) - self.pos

	def take(self, n: int) -> bytes:
		if n > self.remaining:
			raise TruncatedInputError(
				f"need {n} bytes, {self.remaining} available",
				offset=self.pos,
				needed=n,
				available=self.remaining,
			)
		out = bytes(self._view[self.pos:self.pos + n])
		self.pos += n
		return out

	def uint(self, width: int) -> int:
		return int.from_bytes(self.take(width), "little")


def _min_size(ty: TypeDef, registry: TypeRegistry, memo: Dict[Tuple[int, str], int]) -> int:
	"""Smallest number of bytes any value of `ty` can encode to."""
	if isinstance(ty, (TypeRef, ExternRef)):
		if isinstance(ty, TypeRef):
			key = (id(registry), ty.name)
			target, target_reg = registry.get(ty.name), registry
		else:
			lib = registry.library_for(ty)
			key = (id(lib.registry), ty.type_name)
			target, target_reg = lib.registry.get(ty.type_name), lib.registry
		if key not in memo:
			# Guarded recursion only reaches Option/BoundedList, which stop here.
			memo[key] = _min_size(target, target_reg, memo)
		return memo[key]
	if isinstance(ty, Primitive):
		return ty.byte_len
	if isinstance(ty, FixedArray):
		return ty.length * _min_size(ty.element, registry, memo)
	if isinstance(ty, BoundedList):
		return ty.prefix_len
	if isinstance(ty, Option):
		return 1
	if isinstance(ty, Struct):
		return sum(_min_size(f.ty, registry, memo) for f in ty.fields)
	if isinstance(ty, Enum):
		payloads = [_min_size(v.payload, registry, memo) if v.payload is not None else 0 for v in ty.variants]
		return ty.tag.byte_len + min(payloads)
	raise TypeError(f"unknown type node {type(ty).__name__}")


def _prime_min_sizes(registry: TypeRegistry, memo: Dict[Tuple[int, str], int]) -> None:
	"""Fill `memo` for every declared type, dependencies first, with an explicit stack."""
	for root in registry:
		stack: List[Tuple[TypeRegistry, str, bool]] = [(registry, root, False)]
		while stack:
			reg, name, expanded = stack.pop()
			key = (id(reg), name)
			if key in memo:
				continue
			ty = reg.get(name)
			if expanded:
				memo[key] = _min_size(ty, reg, memo)
				continue
			stack.append((reg, name, True))
			for ref, guarded in iter_refs(ty):
				if guarded:
					continue
				if isinstance(ref, TypeRef):
					stack.append((reg, ref.name, False))
				else:
					stack.append((reg.library_for(ref).registry, ref.type_name, False))


class StrictCodec:
	"""Encoder/decoder bound to one registry (and, through it, its imports)."""

	def __init__(self, registry: TypeRegistry) -> None:
		self._registry = registry
		self._min_sizes: Dict[Tuple[int, str], int] = {}
		_prime_min_sizes(registry, self._min_sizes)

	@classmethod
	def for_library(cls, library: Library) -> "StrictCodec":
		return cls(library.registry)

	@property
	def registry(self) -> TypeRegistry:
		return self._registry

	def _lookup(self, ty: TypeSpec) -> Tuple[TypeDef, str]:
		if isinstance(ty, str):
			if ty not in self._registry:
				raise KeyError(f"unknown type '{ty}'")
			return TypeRef(ty), ty
		return ty, "$"

	def min_size(self, ty: TypeSpec, registry: TypeRegistry | None = None) -> int:
		node, _ = self._lookup(ty)
		memo = dict(self._min_sizes)
		return _min_size(node, registry or self._registry, memo)

	# --- encode ---

	def encode(self, ty: TypeSpec, value: Any) -> bytes:
		node, path = self._lookup(ty)
		out = bytearray()
		self._encode(node, value, self._registry, out, path)
		return bytes(out)

	def _encode(self, ty: TypeDef, value: Any, registry: TypeRegistry, out: bytearray, path: str) -> None:
		ty, registry = registry.resolve(ty)
		if isinstance(ty, Primitive):
			if isinstance(value, bool) or not isinstance(value, int):
				raise ValueOutOfRangeError(f"expected an integer for {ty.name}, got {type(value).__name__}", path=path)
			if value < ty.min_value or value > ty.max_value:
				raise ValueOutOfRangeError(f"{value} is outside the range of {ty.name}", path=path)
			out += value.to_bytes(ty.byte_len, "little", signed=ty.signed)
		elif isinstance(ty, FixedArray):
			items = self._sequence(ty.element, value, registry, path)
			if len(items) != ty.length:
				raise ValueOutOfRangeError(f"expected exactly {ty.length} elements, got {len(items)}", path=path)
			self._encode_items(ty.element, items, registry, out, path)
		elif isinstance(ty, BoundedList):
			items = self._sequence(ty.element, value, registry, path)
			if len(items) > ty.max_len:
				raise BoundsExceededError(
					f"{len(items)} elements exceed the declared maximum {ty.max_len}",
					limit=ty.max_len,
					got=len(items),
					path=path,
				)
			out += len(items).to_bytes(ty.prefix_len, "little")
			self._encode_items(ty.element, items, registry, out, path)
		elif isinstance(ty, Struct):
			if not isinstance(value, Mapping):
				raise ValueOutOfRangeError(f"expected a mapping of fields, got {type(value).__name__}", path=path)
			names = ty.field_names()
			extra = [k for k in value if k not in names]
			if extra:
				raise UnexpectedFieldError(f"unknown field(s): {', '.join(sorted(map(str, extra)))}", path=path)
			for f in ty.fields:
				if f.name not in value:
					raise MissingFieldError(f"missing field '{f.name}'", path=path)
				self._encode(f.ty, value[f.name], registry, out, f"{path}.{f.name}")
		elif isinstance(ty, Enum):
			self._encode_enum(ty, value, registry, out, path)
		elif isinstance(ty, Option):
			if value is None:
				out.append(0)
			else:
				out.append(1)
				self._encode(ty.inner, value, registry, out, f"{path}?")
		else:
			raise TypeError(f"unknown type node {type(ty).__name__}")

	def _sequence(self, element: TypeDef, value: Any, registry: TypeRegistry, path: str) -> Any:
		if is_byte_element(element, registry):
			if not isinstance(value, (bytes, bytearray, memoryview)):
				raise ValueOutOfRangeError(f"expected bytes, got {type(value).__name__}", path=path)
			return bytes(value)
		if not isinstance(value, (list, tuple)):
			raise ValueOutOfRangeError(f"expected a list, got {type(value).__name__}", path=path)
		return value

	def _encode_items(self, element: TypeDef, items: Any, registry: TypeRegistry, out: bytearray, path: str) -> None:
		if isinstance(items, bytes):
			out += items
			return
		for i, item in enumerate(items):
			self._encode(element, item, registry, out, f"{path}[{i}]")

	def _encode_enum(self, ty: Enum, value: Any, registry: TypeRegistry, out: bytearray, path: str) -> None:
		if isinstance(value, str):
			value = EnumValue(value)
		if not isinstance(value, EnumValue):
			raise ValueOutOfRangeError(f"expected an EnumValue or variant name, got {type(value).__name__}", path=path)
		variant = ty.variant(value.name)
		if variant is None:
			raise ValueOutOfRangeError(f"unknown variant '{value.name}'", path=path)
		out += variant.discriminant.to_bytes(ty.tag.byte_len, "little")
		if variant.payload is None:
			if value.payload is not None:
				raise UnexpectedFieldError(f"variant '{variant.name}' carries no payload", path=path)
			return
		if value.payload is None and not isinstance(registry.resolve(variant.payload)[0], Option):
			# An optional payload encodes None as an absent value.
			raise MissingFieldError(f"variant '{variant.name}' requires a payload", path=path)
		self._encode(variant.payload, value.payload, registry, out, f"{path}::{variant.name}")

	# --- decode ---

	def decode(
		self,
		ty: TypeSpec,
		data: bytes | bytearray | memoryview,
		offset: int = 0,
		*,
		options: DecodeOptions | None = None,
	) -> Tuple[Any, int]:
		"""Decode one value starting at `offset`; return (value, bytes consumed)."""
		node, _ = self._lookup(ty)
		if offset < 0:
			raise ValueError("offset must be non-negative")
		reader = _Reader(data, offset)
		if reader.remaining < 0:
			raise TruncatedInputError(
				"offset is past the end of the buffer",
				offset=offset,
				needed=0,
				available=0,
			)
		value = self._decode(node, self._registry, reader, options or _DEFAULT_OPTIONS, 0)
		return value, reader.pos - offset

	def decode_exact(self, ty: TypeSpec, data: bytes, *, options: DecodeOptions | None = None) -> Any:
		"""Decode a buffer that must hold exactly one value."""
		value, consumed = self.decode(ty, data, 0, options=options)
		if consumed != len(data):
			raise DecodeError(f"{len(data) - consumed} trailing bytes after value", offset=consumed)
		return value

	def _decode(self, ty: TypeDef, registry: TypeRegistry, reader: _Reader, options: DecodeOptions, depth: int) -> Any:
		ty, registry = registry.resolve(ty)
		if isinstance(ty, Primitive):
			return int.from_bytes(reader.take(ty.byte_len), "little", signed=ty.signed)
		if depth >= options.max_depth:
			raise DepthExceededError(f"value nesting exceeds {options.max_depth}", offset=reader.pos)
		depth += 1
		if isinstance(ty, FixedArray):
			return self._decode_items(ty.element, ty.length, registry, reader, options, depth)
		if isinstance(ty, BoundedList):
			start = reader.pos
			count = reader.uint(ty.prefix_len)
			if count > ty.max_len:
				raise BoundsExceededError(
					f"length prefix {count} exceeds the declared maximum {ty.max_len}",
					limit=ty.max_len,
					got=count,
					offset=start,
				)
			if options.max_elements is not None and count > options.max_elements:
				raise BoundsExceededError(
					f"length prefix {count} exceeds the decode cap {options.max_elements}",
					limit=options.max_elements,
					got=count,
					offset=start,
				)
			return self._decode_items(ty.element, count, registry, reader, options, depth)
		if isinstance(ty, Struct):
			out: Dict[str, Any] = {}
			for f in ty.fields:
				out[f.name] = self._decode(f.ty, registry, reader, options, depth)
			return out
		if isinstance(ty, Enum):
			start = reader.pos
			disc = reader.uint(ty.tag.byte_len)
			variant = ty.by_discriminant(disc)
			if variant is None:
				raise InvalidDiscriminantError(f"discriminant {disc} is not a declared variant", offset=start, value=disc)
			if variant.payload is None:
				return EnumValue(variant.name)
			return EnumValue(variant.name, self._decode(variant.payload, registry, reader, options, depth))
		if isinstance(ty, Option):
			start = reader.pos
			flag = reader.uint(1)
			if flag == 0:
				return None
			if flag != 1:
				raise InvalidDiscriminantError(f"option presence flag must be 0 or 1, got {flag}", offset=start, value=flag)
			return self._decode(ty.inner, registry, reader, options, depth)
		raise TypeError(f"unknown type node {type(ty).__name__}")

	def _decode_items(
		self,
		element: TypeDef,
		count: int,
		registry: TypeRegistry,
		reader: _Reader,
		options: DecodeOptions,
		depth: int,
	) -> Any:
		if is_byte_element(element, registry):
			return reader.take(count)
		needed = count * _min_size(element, registry, self._min_sizes)
		if needed > reader.remaining:
			raise TruncatedInputError(
				f"{count} elements need at least {needed} bytes, {reader.remaining} available",
				offset=reader.pos,
				needed=needed,
				available=reader.remaining,
			)
		return [self._decode(element, registry, reader, options, depth) for _ in range(count)]


def encode_value(library: Library, type_name: str, value: Any) -> bytes:
	return StrictCodec(library.registry).encode(type_name, value)


def decode_value(
	library: Library,
	type_name: str,
	data: bytes | bytearray | memoryview,
	offset: int = 0,
	*,
	options: DecodeOptions | None = None,
) -> Tuple[Any, int]:
	return StrictCodec(library.registry).decode(type_name, data, offset, options=options)


__all__ = ["StrictCodec", "DecodeOptions", "encode_value", "decode_value"]
