"""
strictypes.stlc.core: type model, semantic ids and shared error/diagnostic types.

Modules:
  - span / diagnostics: source locations and structured diagnostics
  - errors: error hierarchy with stable reason codes
  - types_core: TypeDef nodes and primitives
  - semid: tagged-hash semantic identifiers
  - library: TypeRegistry / Library / LibraryIndex
  - bech32: human-readable id and data encodings
"""

__all__ = [
	"span",
	"diagnostics",
	"errors",
	"types_core",
	"semid",
	"library",
	"bech32",
	"logging_utils",
]
