# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from strictypes.stl.convert import FORMATS, DecodeCommandOptions, EncodeOptions, decode_v0, encode_v0
from strictypes.stlc.core.errors import StrictTypesError
from strictypes.stlc.core.logging_utils import configure_logging, verbosity_level
from strictypes.stlc.core.semid import SemanticId


def _add_schema_args(p: argparse.ArgumentParser) -> None:
	p.add_argument("schema", type=Path, help="Path to the schema (.stl) declaring the type")
	p.add_argument("type_name", help="Type name within the schema")
	p.add_argument(
		"-I",
		"--import",
		dest="imports",
		action="append",
		type=Path,
		default=None,
		help="Schema providing imported types (repeatable, loaded in order)",
	)


def _build_parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(prog="stl", description="strict type library tooling (values, ids)")
	p.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity (repeatable)")
	sub = p.add_subparsers(dest="cmd", required=True)

	enc = sub.add_parser("encode", help="Strict-encode a JSON value")
	_add_schema_args(enc)
	enc.add_argument("value", help="Value as JSON (bytes as hex strings, enums as variant names)")
	enc.add_argument("--format", choices=FORMATS, default="hex", help="Output text form (default: hex)")

	dec = sub.add_parser("decode", help="Decode strict-encoded bytes to JSON")
	_add_schema_args(dec)
	dec.add_argument("input", help="Encoded bytes as hex, data1... or z1...")
	dec.add_argument("--max-elements", type=int, default=None, help="Cap on any single collection length")

	ident = sub.add_parser("id", help="Parse a semantic id (id1..., semid:<hex> or hex) and print both forms")
	ident.add_argument("text", help="Semantic id text")
	ident.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
	return p


def _fail(err: Exception) -> int:
	if isinstance(err, StrictTypesError):
		print(err.to_diagnostic().format_human(), file=sys.stderr)
	else:
		print(f"error: {err}", file=sys.stderr)
	return 1


def main(argv: list[str] | None = None) -> int:
	p = _build_parser()
	args = p.parse_args(argv)
	# stdout carries command output; every log record goes to stderr.
	configure_logging(level=verbosity_level(args.verbose), stderr_level=logging.DEBUG)

	if args.cmd == "encode":
		opts = EncodeOptions(
			schema=args.schema,
			type_name=args.type_name,
			value_json=args.value,
			imports=tuple(args.imports or ()),
			format=args.format,
		)
		try:
			print(encode_v0(opts))
			return 0
		except (StrictTypesError, ValueError, KeyError, OSError) as err:
			return _fail(err)

	if args.cmd == "decode":
		opts = DecodeCommandOptions(
			schema=args.schema,
			type_name=args.type_name,
			input_text=args.input,
			imports=tuple(args.imports or ()),
			max_elements=args.max_elements,
		)
		try:
			print(json.dumps(decode_v0(opts), sort_keys=False))
			return 0
		except (StrictTypesError, ValueError, KeyError, OSError) as err:
			return _fail(err)

	if args.cmd == "id":
		try:
			sid = SemanticId.parse(args.text)
		except ValueError as err:
			return _fail(err)
		if args.json:
			print(json.dumps({"hex": sid.hex(), "bech32": sid.to_bech32()}, sort_keys=True, separators=(",", ":")))
		else:
			print(sid.to_bech32())
			print(sid.pin())
		return 0

	raise AssertionError("unreachable")


if __name__ == "__main__":
	sys.exit(main())
