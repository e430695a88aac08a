# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Bundled libraries.

These are ordinary schema files shipped with the package; callers that want
them as imports put them into a `LibraryIndex` explicitly.
"""

from __future__ import annotations

from pathlib import Path

from strictypes.stlc.core.library import Library, LibraryIndex
from strictypes.stlc.loader import LoaderOptions, load_library_file

SCHEMA_DIR = Path(__file__).parent
STD_SCHEMA = SCHEMA_DIR / "std.stl"
BITCOIN_SCHEMA = SCHEMA_DIR / "bitcoin.stl"


def std_library(*, options: LoaderOptions | None = None) -> Library:
	return load_library_file(STD_SCHEMA, options=options)


def bitcoin_library(*, std: Library | None = None, options: LoaderOptions | None = None) -> Library:
	"""Load the Bitcoin library, importing from `std` (loaded fresh when omitted)."""
	if std is None:
		std = std_library(options=options)
	return load_library_file(BITCOIN_SCHEMA, imports=LibraryIndex([std]), options=options)


def well_known_index(*, options: LoaderOptions | None = None) -> LibraryIndex:
	std = std_library(options=options)
	return LibraryIndex([std, bitcoin_library(std=std, options=options)])


__all__ = ["std_library", "bitcoin_library", "well_known_index", "STD_SCHEMA", "BITCOIN_SCHEMA"]
