# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Library loader: schema source text -> immutable `Library`.

Imports are satisfied only through the `LibraryIndex` the caller passes in;
there is no ambient registry of well-known libraries.
"""

from __future__ import annotations

from pathlib import Path

from strictypes.stlc.core.library import Library, LibraryIndex
from strictypes.stlc.parser import parse_schema_source

from .resolver import LibraryBuilder, LoaderOptions


def load_library(
	source: str,
	*,
	imports: LibraryIndex | None = None,
	options: LoaderOptions | None = None,
	file: str | None = None,
) -> Library:
	"""
	Parse and resolve a schema.

	Raises a `SchemaError` subclass on any failure; no partial Library is
	ever returned.
	"""
	decl = parse_schema_source(source, file=file)
	builder = LibraryBuilder(
		decl,
		index=imports if imports is not None else LibraryIndex(),
		options=options if options is not None else LoaderOptions(),
		file=file,
	)
	return builder.build()


def load_library_file(
	path: Path,
	*,
	imports: LibraryIndex | None = None,
	options: LoaderOptions | None = None,
) -> Library:
	return load_library(path.read_text(encoding="utf-8"), imports=imports, options=options, file=str(path))


def load_library_chain(paths: list[Path], *, options: LoaderOptions | None = None) -> LibraryIndex:
	"""
	Load schema files in order, each one seeing every library loaded before it.

	Used by the CLIs for `--import` lists.
	"""
	index = LibraryIndex()
	for path in paths:
		index = index.with_library(load_library_file(path, imports=index, options=options))
	return index


__all__ = ["LoaderOptions", "load_library", "load_library_file", "load_library_chain"]
