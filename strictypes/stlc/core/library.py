# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Resolved, immutable type libraries.

- `TypeRegistry` owns the TypeDef trees of one library plus the resolved
  imports, and answers reference lookups for the codec and the id engine.
- `Library` is the loader's product: header (name, version), registry and
  cached semantic ids.
- `LibraryIndex` is the caller-provided lookup table used to satisfy imports.

None of these objects change after construction; mappings are exposed as
read-only proxies so one Library can be shared by any number of threads.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple

from .semid import SemanticId, library_id
from .types_core import ExternRef, TypeDef, TypeRef

LibraryKey = Tuple[str, str]  # (library name, version)


@dataclass(frozen=True)
class ImportEntry:
	"""An import alias resolved to an exported type of another library."""

	alias: str
	lib: str
	version: str
	type_name: str
	semid: SemanticId
	pinned: Optional[SemanticId] = None

	@property
	def ref(self) -> ExternRef:
		return ExternRef(alias=self.alias, lib=self.lib, version=self.version, type_name=self.type_name)


class TypeRegistry:
	"""Type definitions of one library plus its resolved imports."""

	def __init__(
		self,
		types: Mapping[str, TypeDef],
		imports: Mapping[str, ImportEntry],
		libraries: Mapping[LibraryKey, "Library"],
		ids: Mapping[str, SemanticId] | None = None,
	) -> None:
		self._types = MappingProxyType(dict(types))
		self._imports = MappingProxyType(dict(imports))
		self._libraries = MappingProxyType(dict(libraries))
		self._ids = MappingProxyType(dict(ids or {}))

	@property
	def types(self) -> Mapping[str, TypeDef]:
		return self._types

	@property
	def imports(self) -> Mapping[str, ImportEntry]:
		return self._imports

	@property
	def ids(self) -> Mapping[str, SemanticId]:
		return self._ids

	def with_ids(self, ids: Mapping[str, SemanticId]) -> "TypeRegistry":
		return TypeRegistry(self._types, self._imports, self._libraries, ids)

	def __contains__(self, name: object) -> bool:
		return name in self._types

	def __iter__(self) -> Iterator[str]:
		return iter(self._types)

	def __len__(self) -> int:
		return len(self._types)

	def get(self, name: str) -> TypeDef:
		try:
			return self._types[name]
		except KeyError:
			raise KeyError(f"unknown type '{name}'") from None

	def known_id(self, name: str) -> Optional[SemanticId]:
		return self._ids.get(name)

	def semid(self, name: str) -> SemanticId:
		sid = self._ids.get(name)
		if sid is None:
			raise KeyError(f"no semantic id for type '{name}'")
		return sid

	def extern_id(self, ref: ExternRef) -> SemanticId:
		return self._imports[ref.alias].semid

	def library_for(self, ref: ExternRef) -> "Library":
		entry = self._imports[ref.alias]
		return self._libraries[(entry.lib, entry.version)]

	def resolve(self, ty: TypeDef) -> Tuple[TypeDef, "TypeRegistry"]:
		"""
		Follow reference chains until a structural node is reached.

		Returns the node plus the registry its own references must be resolved
		in (an imported type resolves inside its defining library).
		"""
		registry: TypeRegistry = self
		seen: set[tuple[int, str]] = set()
		while isinstance(ty, (TypeRef, ExternRef)):
			if isinstance(ty, TypeRef):
				key = (id(registry), ty.name)
				if key in seen:
					raise ValueError(f"reference cycle through '{ty.name}'")
				seen.add(key)
				ty = registry.get(ty.name)
			else:
				lib = registry.library_for(ty)
				ty = lib.registry.get(ty.type_name)
				registry = lib.registry
		return ty, registry


class Library:
	"""An immutable, loaded type library."""

	__slots__ = ("_name", "_version", "_registry", "_library_id", "_file")

	def __init__(self, name: str, version: str, registry: TypeRegistry, *, file: str | None = None) -> None:
		self._name = name
		self._version = version
		self._registry = registry
		self._file = file
		import_ids = {
			alias: (e.lib, e.version, e.type_name, e.semid) for alias, e in registry.imports.items()
		}
		self._library_id = library_id(name, version, registry.ids, import_ids)

	@property
	def name(self) -> str:
		return self._name

	@property
	def version(self) -> str:
		return self._version

	@property
	def key(self) -> LibraryKey:
		return (self._name, self._version)

	@property
	def file(self) -> str | None:
		return self._file

	@property
	def registry(self) -> TypeRegistry:
		return self._registry

	@property
	def types(self) -> Mapping[str, TypeDef]:
		return self._registry.types

	@property
	def imports(self) -> Mapping[str, ImportEntry]:
		return self._registry.imports

	@property
	def library_id(self) -> SemanticId:
		return self._library_id

	def semid(self, name: str) -> SemanticId:
		return self._registry.semid(name)

	def __getitem__(self, name: str) -> TypeDef:
		return self._registry.get(name)

	def __contains__(self, name: object) -> bool:
		return name in self._registry

	def __repr__(self) -> str:
		return f"Library({self._name!r}, {self._version!r}, types={len(self._registry)})"


class LibraryIndex:
	"""Caller-provided table of libraries available to satisfy imports."""

	def __init__(self, libraries: Iterable[Library] = ()) -> None:
		libs: Dict[LibraryKey, Library] = {}
		for lib in libraries:
			libs[lib.key] = lib
		self._libs = MappingProxyType(libs)

	def get(self, name: str, version: str) -> Optional[Library]:
		return self._libs.get((name, version))

	def with_library(self, lib: Library) -> "LibraryIndex":
		return LibraryIndex([*self._libs.values(), lib])

	def __iter__(self) -> Iterator[Library]:
		return iter(self._libs.values())

	def __len__(self) -> int:
		return len(self._libs)

	def __contains__(self, key: object) -> bool:
		return key in self._libs


__all__ = ["ImportEntry", "TypeRegistry", "Library", "LibraryIndex", "LibraryKey"]
