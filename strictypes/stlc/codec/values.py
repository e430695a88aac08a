# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Python value model for strict-encoded data, plus JSON conversion.

  Primitive            -> int
  [U8 ^ N], [U8 ^ ..N] -> bytes
  other arrays/lists   -> list
  Struct               -> dict (declared field order)
  Enum                 -> EnumValue (a str is accepted on encode for unit variants)
  Option               -> None or the inner value

JSON form: bytes become lowercase hex strings; enum values become the variant
name, or `{"variant": name, "payload": ...}` when a payload is present.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from strictypes.stlc.core.library import TypeRegistry
from strictypes.stlc.core.types_core import (
	BoundedList,
	Enum,
	FixedArray,
	Option,
	Primitive,
	Struct,
	TypeDef,
	U8,
)


@dataclass(frozen=True)
class EnumValue:
	"""A selected enum variant with its optional payload."""

	name: str
	payload: Any = None

	def __str__(self) -> str:
		if self.payload is None:
			return self.name
		return f"{self.name}({self.payload!r})"


def is_byte_element(element: TypeDef, registry: TypeRegistry) -> bool:
	resolved, _ = registry.resolve(element)
	return resolved == U8


def to_json(value: Any) -> Any:
	"""Render a decoded value as JSON-friendly data."""
	if value is None or isinstance(value, (bool, int, str)):
		return value
	if isinstance(value, (bytes, bytearray, memoryview)):
		return bytes(value).hex()
	if isinstance(value, EnumValue):
		if value.payload is None:
			return value.name
		return {"variant": value.name, "payload": to_json(value.payload)}
	if isinstance(value, Mapping):
		return {str(k): to_json(v) for k, v in value.items()}
	if isinstance(value, (list, tuple)):
		return [to_json(v) for v in value]
	raise TypeError(f"cannot render {type(value).__name__} as JSON")


def from_json(ty: TypeDef, obj: Any, registry: TypeRegistry) -> Any:
	"""
	Build a codec value for `ty` from JSON data (the inverse of `to_json`).

	Raises ValueError for shapes that cannot be interpreted; domain checks
	(ranges, bounds, required fields) are left to the encoder.
	"""
	node, reg = registry.resolve(ty)
	if isinstance(node, Primitive):
		if isinstance(obj, str):
			return int(obj, 0)
		return obj
	if isinstance(node, (FixedArray, BoundedList)):
		if is_byte_element(node.element, reg):
			if not isinstance(obj, str):
				raise ValueError("byte sequences are written as hex strings")
			return bytes.fromhex(obj)
		if not isinstance(obj, list):
			raise ValueError("sequences are written as JSON arrays")
		return [from_json(node.element, item, reg) for item in obj]
	if isinstance(node, Struct):
		if not isinstance(obj, dict):
			raise ValueError("structs are written as JSON objects")
		out: dict[str, Any] = {}
		by_name = {f.name: f for f in node.fields}
		for key, item in obj.items():
			field = by_name.get(key)
			# Unknown keys are passed through so the encoder can report them.
			out[key] = from_json(field.ty, item, reg) if field is not None else item
		return out
	if isinstance(node, Enum):
		if isinstance(obj, str):
			return EnumValue(obj)
		if not isinstance(obj, dict) or "variant" not in obj:
			raise ValueError("enum values are written as a variant name or {\"variant\": ..., \"payload\": ...}")
		variant = node.variant(str(obj["variant"]))
		payload = obj.get("payload")
		if variant is not None and variant.payload is not None and payload is not None:
			payload = from_json(variant.payload, payload, reg)
		return EnumValue(str(obj["variant"]), payload)
	if isinstance(node, Option):
		if obj is None:
			return None
		return from_json(node.inner, obj, reg)
	raise TypeError(f"unknown type node {type(node).__name__}")


__all__ = ["EnumValue", "is_byte_element", "to_json", "from_json"]
