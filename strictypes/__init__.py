# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
strictypes: strict type libraries with content-derived semantic ids.

Subpackages:
  stlc: schema compiler (parser, loader, semantic ids, strict codec, caches)
  stl: tooling CLI (encode/decode/id)

Common entry points are re-exported here.
"""

from strictypes.stlc.codec import DecodeOptions, EnumValue, StrictCodec, decode_value, encode_value
from strictypes.stlc.core.library import Library, LibraryIndex
from strictypes.stlc.core.semid import SemanticId
from strictypes.stlc.loader import LoaderOptions, load_library, load_library_file

__all__ = [
	"DecodeOptions",
	"EnumValue",
	"Library",
	"LibraryIndex",
	"LoaderOptions",
	"SemanticId",
	"StrictCodec",
	"decode_value",
	"encode_value",
	"load_library",
	"load_library_file",
]
