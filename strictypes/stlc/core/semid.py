# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Semantic id engine: a content-addressed fingerprint for every type.

The id of a type is a tagged SHA-256 over a canonical description of its shape:
one kind byte, then kind-specific fields, with every referenced type
contributing its own 32-byte id (never its name). Consequences:

- renaming a declared type does not change its id (names are not hashed);
- renaming, reordering or retyping a field, renaming a variant or changing a
  discriminant does change it;
- a wrapper declaration (`data Vout : U32`) shares the id of what it wraps.

Legal recursion (through an Option or a BoundedList) is described with a
back-reference marker carrying the distance, in named-type frames, to the
declaration being referenced. The id of a named type is always the one computed
with that type at the root of the walk. Ids of non-recursive types do not depend
on the walk and are reused anywhere; ids of recursive types are only reused
from an empty stack, so the result never depends on computation order.

Pinned layout (must stay stable across implementations):
  PRIMITIVE: kind u8 | bits u16 | signed u8
  ARRAY:     kind u8 | element id | length u32
  LIST:      kind u8 | element id | max_len u32
  STRUCT:    kind u8 | count u16 | (name_len u16 | name | field id)*
  ENUM:      kind u8 | tag_bits u16 | count u16 |
             (name_len u16 | name | discriminant u64 | has_payload u8 | [payload id])*
  OPTION:    kind u8 | inner id
  BACKREF:   0xff u8 | depth u16
All integers little-endian; names UTF-8.
"""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Protocol, Set, Tuple

from . import bech32
from .types_core import (
	BoundedList,
	Enum,
	ExternRef,
	FixedArray,
	Option,
	Primitive,
	Struct,
	TypeDef,
	TypeRef,
)

SEMID_TAG = "urn:strictypes:semid#2024"
LIBID_TAG = "urn:strictypes:lib#2024"
BACKREF_KIND = 0xFF

_CLOSED = 1 << 30  # "no open back-reference" marker for the lowest-frame bookkeeping


def tagged_hash(tag: str, msg: bytes) -> bytes:
	"""BIP-340 style tagged hash: sha256(sha256(tag) || sha256(tag) || msg)."""
	t = hashlib.sha256(tag.encode("utf-8")).digest()
	return hashlib.sha256(t + t + msg).digest()


@dataclass(frozen=True, order=True)
class SemanticId:
	"""A 32-byte structural fingerprint."""

	digest: bytes

	def __post_init__(self) -> None:
		if not isinstance(self.digest, bytes) or len(self.digest) != 32:
			raise ValueError("semantic id must be exactly 32 bytes")

	def hex(self) -> str:
		return self.digest.hex()

	def to_bech32(self) -> str:
		return bech32.encode_id(self.digest)

	def __str__(self) -> str:
		return self.to_bech32()

	def pin(self) -> str:
		"""Render the form accepted after `--` in schema source."""
		return f"semid:{self.hex()}"

	@classmethod
	def parse(cls, text: str) -> "SemanticId":
		"""Parse `semid:<hex>`, a bare 64-digit hex string or a bech32 `id1...` string."""
		text = text.strip()
		if text.startswith("semid:"):
			text = text[len("semid:"):]
		if len(text) == 64 and all(c in "0123456789abcdefABCDEF" for c in text):
			return cls(bytes.fromhex(text))
		return cls(bech32.decode_id(text))


class IdResolver(Protocol):
	"""What the engine needs from a type registry."""

	def get(self, name: str) -> TypeDef: ...

	def known_id(self, name: str) -> Optional[SemanticId]: ...

	def extern_id(self, ref: ExternRef) -> SemanticId: ...


def _name_bytes(name: str) -> bytes:
	raw = name.encode("utf-8")
	return struct.pack("<H", len(raw)) + raw


class SemanticIdEngine:
	"""
	Computes semantic ids against one registry.

	Root ids of named types are memoized for the engine's lifetime. The loader
	runs one engine eagerly over every declaration in dependency order, so
	lookups of already-computed non-recursive dependencies never recurse.
	"""

	def __init__(self, resolver: IdResolver) -> None:
		self._resolver = resolver
		self._memo: Dict[str, SemanticId] = {}
		self._recursive: Set[str] = set()

	@property
	def computed(self) -> Mapping[str, SemanticId]:
		return dict(self._memo)

	def type_id(self, name: str) -> SemanticId:
		"""Id of the named type declared in the registry."""
		known = self._memo.get(name) or self._resolver.known_id(name)
		if known is not None:
			return known
		digest, _ = self._named(name, [])
		return SemanticId(digest)

	def compute(self, ty: TypeDef) -> SemanticId:
		"""Id of an arbitrary (possibly inline) type expression."""
		digest, _ = self._node(ty, [])
		return SemanticId(digest)

	def _named(self, name: str, stack: List[str]) -> Tuple[bytes, int]:
		if not stack or name not in self._recursive:
			known = self._memo.get(name)
			if known is None and not stack:
				known = self._resolver.known_id(name)
			if known is not None:
				return known.digest, _CLOSED
		if name in stack:
			frame = stack.index(name)
			depth = len(stack) - 1 - frame
			return tagged_hash(SEMID_TAG, struct.pack("<BH", BACKREF_KIND, depth)), frame
		frame = len(stack)
		stack.append(name)
		try:
			digest, lowest = self._node(self._resolver.get(name), stack)
		finally:
			stack.pop()
		if lowest >= frame:
			# Nothing above this frame was referenced: this is the root id.
			if lowest == frame:
				self._recursive.add(name)
			self._memo[name] = SemanticId(digest)
			lowest = _CLOSED
		return digest, lowest

	def _node(self, ty: TypeDef, stack: List[str]) -> Tuple[bytes, int]:
		if isinstance(ty, TypeRef):
			return self._named(ty.name, stack)
		if isinstance(ty, ExternRef):
			return self._resolver.extern_id(ty).digest, _CLOSED

		desc = bytearray([ty.kind.value])
		lowest = _CLOSED
		if isinstance(ty, Primitive):
			desc += struct.pack("<HB", ty.bits, 1 if ty.signed else 0)
		elif isinstance(ty, (FixedArray, BoundedList)):
			elem, low = self._node(ty.element, stack)
			lowest = min(lowest, low)
			desc += elem
			desc += struct.pack("<I", ty.length if isinstance(ty, FixedArray) else ty.max_len)
		elif isinstance(ty, Option):
			inner, low = self._node(ty.inner, stack)
			lowest = min(lowest, low)
			desc += inner
		elif isinstance(ty, Struct):
			desc += struct.pack("<H", len(ty.fields))
			for f in ty.fields:
				fid, low = self._node(f.ty, stack)
				lowest = min(lowest, low)
				desc += _name_bytes(f.name)
				desc += fid
		elif isinstance(ty, Enum):
			desc += struct.pack("<HH", ty.tag.bits, len(ty.variants))
			for v in ty.variants:
				desc += _name_bytes(v.name)
				desc += struct.pack("<Q", v.discriminant)
				if v.payload is None:
					desc.append(0)
					continue
				pid, low = self._node(v.payload, stack)
				lowest = min(lowest, low)
				desc.append(1)
				desc += pid
		else:
			raise TypeError(f"unknown type node {type(ty).__name__}")
		return tagged_hash(SEMID_TAG, bytes(desc)), lowest


def compute_id(ty: TypeDef, registry: IdResolver) -> SemanticId:
	"""Compute the semantic id of `ty`, resolving references through `registry`."""
	return SemanticIdEngine(registry).compute(ty)


def library_id(
	name: str,
	version: str,
	type_ids: Mapping[str, SemanticId],
	import_ids: Mapping[str, Tuple[str, str, str, SemanticId]],
) -> SemanticId:
	"""
	Identity of a whole library: header plus every (name, id) pair in declaration
	order plus every import (alias, lib, version, type name, id) sorted by alias.
	"""
	buf = bytearray()
	buf += _name_bytes(name)
	buf += _name_bytes(version)
	buf += struct.pack("<H", len(type_ids))
	for tname, sid in type_ids.items():
		buf += _name_bytes(tname)
		buf += sid.digest
	buf += struct.pack("<H", len(import_ids))
	for alias in sorted(import_ids):
		lib, ver, tname, sid = import_ids[alias]
		buf += _name_bytes(alias)
		buf += _name_bytes(lib)
		buf += _name_bytes(ver)
		buf += _name_bytes(tname)
		buf += sid.digest
	return SemanticId(tagged_hash(LIBID_TAG, bytes(buf)))


__all__ = [
	"SEMID_TAG",
	"LIBID_TAG",
	"SemanticId",
	"SemanticIdEngine",
	"IdResolver",
	"compute_id",
	"library_id",
	"tagged_hash",
]
