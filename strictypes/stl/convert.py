# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Value conversion commands: JSON <-> strict encoding for a type of a loaded library.

Output/input text forms:
  hex   plain lowercase hex
  data  bech32 `data1...`
  zip   bech32 `z1...` (raw DEFLATE)
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from strictypes.stlc.codec import DecodeOptions, StrictCodec, from_json, to_json
from strictypes.stlc.core import bech32
from strictypes.stlc.core.library import Library
from strictypes.stlc.core.types_core import TypeRef
from strictypes.stlc.loader import LoaderOptions, load_library_chain, load_library_file

FORMATS = ("hex", "data", "zip")


@dataclass(frozen=True)
class EncodeOptions:
	schema: Path
	type_name: str
	value_json: str
	imports: tuple[Path, ...] = ()
	format: str = "hex"


@dataclass(frozen=True)
class DecodeCommandOptions:
	schema: Path
	type_name: str
	input_text: str
	imports: tuple[Path, ...] = ()
	max_elements: Optional[int] = None


def load_schema(schema: Path, imports: tuple[Path, ...]) -> Library:
	opts = LoaderOptions()
	index = load_library_chain(list(imports), options=opts)
	return load_library_file(schema, imports=index, options=opts)


def render_bytes(data: bytes, fmt: str) -> str:
	if fmt == "hex":
		return data.hex()
	if fmt == "data":
		return bech32.encode_data(data)
	if fmt == "zip":
		return bech32.encode_zip(data)
	raise ValueError(f"unknown output format '{fmt}'")


def parse_bytes(text: str) -> bytes:
	"""Accept hex, `data1...` or `z1...`."""
	text = text.strip()
	lowered = text.lower()
	if lowered.startswith(bech32.HRP_DATA + "1"):
		return bech32.decode_data(text)
	if lowered.startswith(bech32.HRP_ZIP + "1"):
		return bech32.decode_zip(text)
	try:
		return bytes.fromhex(text)
	except ValueError as err:
		raise ValueError("input is neither hex nor a data1/z1 string") from err


def encode_v0(opts: EncodeOptions) -> str:
	lib = load_schema(opts.schema, opts.imports)
	if opts.type_name not in lib:
		raise KeyError(f"library {lib.name} has no type '{opts.type_name}'")
	try:
		obj = json.loads(opts.value_json)
	except json.JSONDecodeError as err:
		raise ValueError(f"value is not valid JSON: {err}") from err
	value = from_json(TypeRef(opts.type_name), obj, lib.registry)
	return render_bytes(StrictCodec(lib.registry).encode(opts.type_name, value), opts.format)


def decode_v0(opts: DecodeCommandOptions) -> Any:
	"""Decode exactly one value from the input and return its JSON form."""
	lib = load_schema(opts.schema, opts.imports)
	if opts.type_name not in lib:
		raise KeyError(f"library {lib.name} has no type '{opts.type_name}'")
	data = parse_bytes(opts.input_text)
	codec = StrictCodec(lib.registry)
	value = codec.decode_exact(opts.type_name, data, options=DecodeOptions(max_elements=opts.max_elements))
	return to_json(value)
