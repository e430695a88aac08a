# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Library cache (v0): `library id -> serialized Library`.

A cached library is a canonical JSON document named `<library-id-hex>.stl.json`:

{
  "format": "strictypes-lib",
  "version": 0,
  "library": {"name": "...", "version": "...", "id": "<hex>"},
  "types": [{"name": "<TypeName>", "semid": "<hex>"}, ...],   (declaration order)
  "imports": [{"alias": ..., "lib": ..., "version": ..., "type": ..., "semid": "<hex>"}],
  "source": "<schema text regenerated from the loaded TypeDefs>"
}

`source` is what gets reloaded: it goes back through the normal loader (with
every import pinned to its recorded id), so a cache entry is trusted only if
it rebuilds to exactly the library id it is filed under.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from strictypes.stlc.core.library import Library, LibraryIndex
from strictypes.stlc.core.semid import SemanticId
from strictypes.stlc.core.types_core import format_type
from strictypes.stlc.loader import LoaderOptions, load_library

logger = logging.getLogger(__name__)

FORMAT = "strictypes-lib"
VERSION = 0
SUFFIX = ".stl.json"


def canonical_json_bytes(obj: Any) -> bytes:
	"""
	Render JSON deterministically.

	Rules:
	- UTF-8
	- no insignificant whitespace
	- stable key ordering
	"""
	return json.dumps(obj, sort_keys=True, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def render_library_source(lib: Library) -> str:
	"""Regenerate schema source for a loaded library (imports pinned to their ids)."""
	lines = [f"typelib {lib.name} {lib.version}", ""]
	for alias, entry in lib.imports.items():
		alias_part = f" as {alias}" if alias != entry.type_name else ""
		lines.append(f"import {entry.type_name}{alias_part} from {entry.lib} {entry.version} -- {entry.semid.pin()}")
	if lib.imports:
		lines.append("")
	for name, ty in lib.types.items():
		lines.append(f"data {name} : {format_type(ty)} -- {lib.semid(name).pin()}")
	return "\n".join(lines) + "\n"


def library_to_obj(lib: Library) -> Dict[str, Any]:
	return {
		"format": FORMAT,
		"version": VERSION,
		"library": {"name": lib.name, "version": lib.version, "id": lib.library_id.hex()},
		"types": [{"name": name, "semid": lib.semid(name).hex()} for name in lib.types],
		"imports": [
			{
				"alias": alias,
				"lib": entry.lib,
				"version": entry.version,
				"type": entry.type_name,
				"semid": entry.semid.hex(),
			}
			for alias, entry in lib.imports.items()
		],
		"source": render_library_source(lib),
	}


def library_from_obj(obj: Any, *, imports: LibraryIndex | None = None) -> Library:
	"""
	Rebuild a Library from its cache document.

	Raises ValueError when the document is malformed or the rebuilt library
	disagrees with the recorded ids. Schema errors from the loader propagate.
	"""
	if not isinstance(obj, dict):
		raise ValueError("library cache must be a JSON object")
	if obj.get("format") != FORMAT or obj.get("version") != VERSION:
		raise ValueError("unsupported library cache format/version")
	header = obj.get("library")
	source = obj.get("source")
	types = obj.get("types")
	if not isinstance(header, dict) or not isinstance(source, str) or not isinstance(types, list):
		raise ValueError("library cache missing library/types/source")
	lib = load_library(source, imports=imports, options=LoaderOptions(strict_pins=True))
	if (lib.name, lib.version) != (header.get("name"), header.get("version")):
		raise ValueError(
			f"library cache header ({header.get('name')}, {header.get('version')}) does not match source ({lib.name}, {lib.version})"
		)
	recorded = [(t.get("name"), t.get("semid")) for t in types if isinstance(t, dict)]
	if recorded != [(name, lib.semid(name).hex()) for name in lib.types]:
		raise ValueError("library cache type list does not match source")
	if header.get("id") != lib.library_id.hex():
		raise ValueError(f"library cache id mismatch: recorded {header.get('id')}, rebuilt {lib.library_id.hex()}")
	return lib


@dataclass(frozen=True)
class CacheEntry:
	library_id: SemanticId
	path: Path


class LibraryCache:
	"""Directory of cached libraries addressed by library id."""

	def __init__(self, root: Path) -> None:
		self._root = Path(root)

	@property
	def root(self) -> Path:
		return self._root

	def path_for(self, library_id: SemanticId) -> Path:
		return self._root / f"{library_id.hex()}{SUFFIX}"

	def store(self, lib: Library) -> Path:
		"""Write `lib` under its library id; an existing identical entry is left untouched."""
		path = self.path_for(lib.library_id)
		data = canonical_json_bytes(library_to_obj(lib)) + b"\n"
		if path.exists() and path.read_bytes() == data:
			logger.debug("cache hit for %s %s (%s)", lib.name, lib.version, path.name)
			return path
		self._root.mkdir(parents=True, exist_ok=True)
		tmp = path.with_suffix(path.suffix + ".tmp")
		tmp.write_bytes(data)
		tmp.replace(path)
		logger.info("cached library %s %s as %s", lib.name, lib.version, path.name)
		return path

	def load(self, library_id: SemanticId, *, imports: LibraryIndex | None = None) -> Library:
		"""
		Load the library filed under `library_id`.

		Raises FileNotFoundError when absent and ValueError when the entry does
		not rebuild to `library_id`.
		"""
		path = self.path_for(library_id)
		try:
			obj = json.loads(path.read_text(encoding="utf-8"))
		except json.JSONDecodeError as err:
			raise ValueError(f"library cache '{path.name}' is not valid JSON") from err
		lib = library_from_obj(obj, imports=imports)
		if lib.library_id != library_id:
			raise ValueError(f"library cache '{path.name}' rebuilt to a different id {lib.library_id.hex()}")
		logger.debug("loaded cached library %s %s", lib.name, lib.version)
		return lib

	def entries(self) -> List[CacheEntry]:
		if not self._root.is_dir():
			return []
		out: List[CacheEntry] = []
		for path in sorted(self._root.glob(f"*{SUFFIX}")):
			stem = path.name[: -len(SUFFIX)]
			try:
				sid = SemanticId.parse(stem)
			except ValueError:
				logger.warning("ignoring cache file with malformed name: %s", path.name)
				continue
			out.append(CacheEntry(library_id=sid, path=path))
		return out

	def find(self, name: str, version: str) -> Optional[CacheEntry]:
		"""Look up an entry by library header (reads each candidate's header only)."""
		for entry in self.entries():
			try:
				obj = json.loads(entry.path.read_text(encoding="utf-8"))
			except json.JSONDecodeError:
				logger.warning("ignoring unreadable cache file: %s", entry.path.name)
				continue
			header = obj.get("library") if isinstance(obj, dict) else None
			if isinstance(header, dict) and header.get("name") == name and header.get("version") == version:
				return entry
		return None


__all__ = [
	"CacheEntry",
	"LibraryCache",
	"canonical_json_bytes",
	"library_from_obj",
	"library_to_obj",
	"render_library_source",
]
