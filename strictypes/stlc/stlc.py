# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
`stlc`: load a schema, report semantic ids or diagnostics.

  SCHEMA --import DEP ... -> Library -> ids (+ optional cache entry)

With --json, prints one JSON object with `exit_code` plus either the library
report or structured diagnostics (phase/code/message/severity/file/line/column);
otherwise ids go to stdout and diagnostics to stderr.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from strictypes.stlc.core.diagnostics import Diagnostic
from strictypes.stlc.core.errors import StrictTypesError
from strictypes.stlc.core.library import Library, LibraryIndex
from strictypes.stlc.core.logging_utils import configure_logging, verbosity_level
from strictypes.stlc.core.span import Span
from strictypes.stlc.core.types_core import format_type
from strictypes.stlc.loader import LoaderOptions, load_library_chain, load_library_file
from strictypes.stlc.packages.library_cache_v0 import LibraryCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompileOptions:
	schema: Path
	imports: tuple[Path, ...] = ()
	strict_pins: bool = True
	emit_cache: Optional[Path] = None


@dataclass
class CompileResult:
	library: Optional[Library] = None
	diagnostics: list[Diagnostic] | None = None
	cache_path: Optional[Path] = None

	@property
	def ok(self) -> bool:
		return self.library is not None and not self.diagnostics


def compile_schema(opts: CompileOptions) -> CompileResult:
	"""Load `opts.schema` with its imports; errors become diagnostics."""
	loader_opts = LoaderOptions(strict_pins=opts.strict_pins)
	try:
		index = load_library_chain(list(opts.imports), options=loader_opts) if opts.imports else LibraryIndex()
		lib = load_library_file(opts.schema, imports=index, options=loader_opts)
	except StrictTypesError as err:
		return CompileResult(diagnostics=[err.to_diagnostic()])
	except OSError as err:
		path = getattr(err, "filename", None)
		return CompileResult(
			diagnostics=[
				Diagnostic(
					message=err.strerror or str(err),
					code="io",
					phase="io",
					span=Span(file=str(path) if path is not None else None),
				)
			]
		)
	result = CompileResult(library=lib, diagnostics=[])
	if opts.emit_cache is not None:
		cache = LibraryCache(opts.emit_cache)
		try:
			result.cache_path = cache.store(lib)
		except OSError as err:
			result.diagnostics = [
				Diagnostic(message=f"cannot write cache: {err}", code="io", phase="cache", span=Span(file=str(opts.emit_cache)))
			]
	return result


def library_report(lib: Library) -> dict[str, Any]:
	return {
		"name": lib.name,
		"version": lib.version,
		"library_id": lib.library_id.hex(),
		"library_id_bech32": lib.library_id.to_bech32(),
		"types": [
			{
				"name": name,
				"semid": lib.semid(name).hex(),
				"semid_bech32": lib.semid(name).to_bech32(),
				"definition": format_type(ty),
			}
			for name, ty in lib.types.items()
		],
		"imports": [
			{"alias": alias, "lib": e.lib, "version": e.version, "type": e.type_name, "semid": e.semid.hex()}
			for alias, e in lib.imports.items()
		],
	}


def _print_human(result: CompileResult) -> None:
	lib = result.library
	assert lib is not None
	print(f"typelib {lib.name} {lib.version} {lib.library_id}")
	width = max((len(n) for n in lib.types), default=0)
	for name in lib.types:
		print(f"  {name.ljust(width)}  {lib.semid(name)}")
	if result.cache_path is not None:
		print(f"cache: {result.cache_path}")


def main(argv: list[str] | None = None) -> int:
	parser = argparse.ArgumentParser(prog="stlc", description="strict type library compiler")
	parser.add_argument("schema", type=Path, help="Path to the schema (.stl) to load")
	parser.add_argument(
		"-I",
		"--import",
		dest="imports",
		action="append",
		type=Path,
		default=None,
		help="Schema providing imported types (repeatable; loaded in order, each may import earlier ones)",
	)
	parser.add_argument("--emit-cache", type=Path, default=None, help="Write the loaded library into this cache directory")
	parser.add_argument(
		"--no-strict-pins",
		dest="strict_pins",
		action="store_false",
		help="Downgrade mismatched declaration pins to warnings (import pins stay fatal)",
	)
	parser.add_argument(
		"--json",
		action="store_true",
		help="Emit the report or diagnostics as JSON (phase/code/message/severity/file/line/column)",
	)
	parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity (repeatable)")
	args = parser.parse_args(argv)

	# Keep stdout a single JSON document under --json.
	configure_logging(level=verbosity_level(args.verbose), stderr_level=logging.DEBUG if args.json else logging.WARNING)

	opts = CompileOptions(
		schema=args.schema,
		imports=tuple(args.imports or ()),
		strict_pins=bool(args.strict_pins),
		emit_cache=args.emit_cache,
	)
	result = compile_schema(opts)
	exit_code = 0 if result.ok else 1

	if args.json:
		payload: dict[str, Any] = {
			"exit_code": exit_code,
			"diagnostics": [d.to_json(default_file=str(args.schema)) for d in (result.diagnostics or [])],
		}
		if result.library is not None:
			payload["library"] = library_report(result.library)
		if result.cache_path is not None:
			payload["cache_path"] = str(result.cache_path)
		print(json.dumps(payload, sort_keys=True))
		return exit_code

	for diag in result.diagnostics or []:
		print(diag.format_human(), file=sys.stderr)
	if exit_code == 0:
		_print_human(result)
	return exit_code


if __name__ == "__main__":
	sys.exit(main())
