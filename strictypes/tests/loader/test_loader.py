# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import logging

import pytest

from strictypes.stlc.codec import StrictCodec
from strictypes.stlc.core.errors import (
	CyclicDefinitionError,
	DuplicateSymbolError,
	ImportMismatchError,
	InvalidDefinitionError,
	SchemaError,
	SchemaSyntaxError,
	SemanticIdMismatchError,
	UnresolvedImportError,
	UnresolvedTypeError,
)
from strictypes.stlc.core.library import LibraryIndex
from strictypes.stlc.core.types_core import BoundedList, Enum, ExternRef, Option, Struct, TypeRef
from strictypes.stlc.loader import LoaderOptions, load_library
from strictypes.stlc.parser.parser import MAX_TYPE_NESTING

STD = """
typelib Std 0.1.0
data Bool : false = 0 | true = 1
"""

WRONG_PIN = "semid:" + "00" * 32


def _std_index() -> LibraryIndex:
	return LibraryIndex([load_library(STD)])


def test_load_simple_library() -> None:
	lib = load_library(
		"""
typelib Demo 0.1.0
data Txid     : [U8 ^ 32]
data Vout     : U32
data Outpoint : txid Txid, vout Vout
"""
	)
	assert lib.name == "Demo"
	assert lib.version == "0.1.0"
	assert list(lib.types) == ["Txid", "Vout", "Outpoint"]
	outpoint = lib["Outpoint"]
	assert isinstance(outpoint, Struct)
	assert outpoint.fields[0].ty == TypeRef("Txid")
	assert "Vout" in lib
	assert set(lib.registry.ids) == {"Txid", "Vout", "Outpoint"}


def test_library_is_read_only() -> None:
	lib = load_library("typelib Demo 0.1.0\ndata A : U8\n")
	with pytest.raises(TypeError):
		lib.types["B"] = lib.types["A"]  # type: ignore[index]


def test_wrapper_shares_id_with_wrapped_type() -> None:
	lib = load_library("typelib Demo 0.1.0\ndata Script : [U8 ^ ..0xff]\ndata SigScript : Script\n")
	assert lib.semid("SigScript") == lib.semid("Script")


def test_imports_resolve_through_index() -> None:
	index = _std_index()
	lib = load_library(
		"""
typelib Demo 0.1.0
import Bool from Std 0.1.0
import Bool as Flag from Std 0.1.0
data Pair : a Bool, b Flag
""",
		imports=index,
	)
	pair = lib["Pair"]
	assert isinstance(pair, Struct)
	assert pair.fields[0].ty == ExternRef("Bool", "Std", "0.1.0", "Bool")
	assert pair.fields[1].ty == ExternRef("Flag", "Std", "0.1.0", "Bool")
	std_bool = index.get("Std", "0.1.0").semid("Bool")
	assert lib.imports["Flag"].semid == std_bool


def test_imported_id_matches_local_copy() -> None:
	index = _std_index()
	via_import = load_library(
		"typelib A 0.1.0\nimport Bool from Std 0.1.0\ndata Flag : x Bool\n",
		imports=index,
	)
	local = load_library("typelib B 0.1.0\ndata Bool : false = 0 | true = 1\ndata Flag : x Bool\n")
	assert via_import.semid("Flag") == local.semid("Flag")


def test_import_pin_roundtrip_and_mismatch() -> None:
	index = _std_index()
	pin = index.get("Std", "0.1.0").semid("Bool")
	for text in (pin.pin(), pin.to_bech32()):
		lib = load_library(f"typelib Demo 0.1.0\nimport Bool from Std 0.1.0 -- {text}\n", imports=index)
		assert lib.imports["Bool"].pinned == pin

	with pytest.raises(ImportMismatchError) as excinfo:
		load_library(f"typelib Demo 0.1.0\nimport Bool from Std 0.1.0 -- {WRONG_PIN}\n", imports=index)
	assert excinfo.value.got == pin.hex()
	assert excinfo.value.reason_code == "import-mismatch"


def test_import_pin_is_enforced_even_when_not_strict() -> None:
	with pytest.raises(ImportMismatchError):
		load_library(
			f"typelib Demo 0.1.0\nimport Bool from Std 0.1.0 -- {WRONG_PIN}\n",
			imports=_std_index(),
			options=LoaderOptions(strict_pins=False),
		)


def test_unresolved_imports() -> None:
	with pytest.raises(UnresolvedImportError, match="not available"):
		load_library("typelib Demo 0.1.0\nimport Bool from Std 0.1.0\n")
	with pytest.raises(UnresolvedImportError, match="no type 'Byte'"):
		load_library("typelib Demo 0.1.0\nimport Byte from Std 0.1.0\n", imports=_std_index())
	with pytest.raises(UnresolvedImportError):
		load_library("typelib Demo 0.1.0\nimport Bool from Std 0.2.0\n", imports=_std_index())


def test_dangling_type_name() -> None:
	with pytest.raises(UnresolvedTypeError) as excinfo:
		load_library("typelib Demo 0.1.0\ndata A : x Missing\n", file="demo.stl")
	assert excinfo.value.span.line == 2
	assert excinfo.value.span.file == "demo.stl"
	assert isinstance(excinfo.value, UnresolvedImportError)


def test_local_pin_roundtrip() -> None:
	lib = load_library("typelib Demo 0.1.0\ndata A : [U8 ^ 32]\n")
	sid = lib.semid("A")
	pinned = load_library(f"typelib Demo 0.1.0\ndata A : [U8 ^ 32] -- {sid.pin()}\n")
	assert pinned.semid("A") == sid
	pinned_bech = load_library(f"typelib Demo 0.1.0\ndata A : [U8 ^ 32] -- {sid}\n")
	assert pinned_bech.semid("A") == sid


def test_local_pin_mismatch_is_fatal_by_default() -> None:
	with pytest.raises(SemanticIdMismatchError) as excinfo:
		load_library(f"typelib Demo 0.1.0\ndata A : U8 -- {WRONG_PIN}\n")
	assert excinfo.value.expected == "00" * 32


def test_local_pin_mismatch_warns_when_not_strict(caplog: pytest.LogCaptureFixture) -> None:
	with caplog.at_level(logging.WARNING, logger="strictypes.stlc.loader.resolver"):
		lib = load_library(
			f"typelib Demo 0.1.0\ndata A : U8 -- {WRONG_PIN}\n",
			options=LoaderOptions(strict_pins=False),
		)
	assert "A" in lib
	assert any("annotation says" in r.getMessage() for r in caplog.records)


def test_malformed_pin_is_syntax_error() -> None:
	with pytest.raises(SchemaSyntaxError, match="invalid semantic id"):
		load_library("typelib Demo 0.1.0\ndata A : U8 -- semid:zz\n")


def test_duplicate_symbols() -> None:
	with pytest.raises(DuplicateSymbolError) as excinfo:
		load_library("typelib Demo 0.1.0\ndata A : U8\ndata A : U16\n")
	assert excinfo.value.symbol == "A"
	with pytest.raises(DuplicateSymbolError, match="shadows"):
		load_library("typelib Demo 0.1.0\ndata U8 : U16\n")
	with pytest.raises(DuplicateSymbolError, match="duplicate field"):
		load_library("typelib Demo 0.1.0\ndata A : x U8, x U16\n")
	with pytest.raises(DuplicateSymbolError, match="duplicate variant"):
		load_library("typelib Demo 0.1.0\ndata A : x = 0 | x = 1\n")
	with pytest.raises(DuplicateSymbolError):
		load_library(
			"typelib Demo 0.1.0\nimport Bool from Std 0.1.0\ndata Bool : U8\n",
			imports=_std_index(),
		)


def test_invalid_unions() -> None:
	with pytest.raises(InvalidDefinitionError, match="already used"):
		load_library("typelib Demo 0.1.0\ndata A : x = 1 | y = 1\n")
	with pytest.raises(InvalidDefinitionError, match="does not fit"):
		load_library("typelib Demo 0.1.0\ndata A : x = 0 | y = 256\n")
	with pytest.raises(InvalidDefinitionError, match="unsigned"):
		load_library("typelib Demo 0.1.0\ndata A : <I16> x = 0\n")
	with pytest.raises(InvalidDefinitionError):
		load_library("typelib Demo 0.1.0\ndata A : <U128> x = 0\n")
	lib = load_library("typelib Demo 0.1.0\ndata A : <U16> x = 0 | y = 0xffff\n")
	assert isinstance(lib["A"], Enum)
	assert lib["A"].tag.bits == 16


def test_bound_above_u32_rejected() -> None:
	with pytest.raises(InvalidDefinitionError, match="exceeds"):
		load_library("typelib Demo 0.1.0\ndata A : [U8 ^ ..0x1_0000_0000]\n")


def test_nested_option_rejected() -> None:
	with pytest.raises(InvalidDefinitionError, match="nests an option"):
		load_library("typelib Demo 0.1.0\ndata A : U8??\n")
	with pytest.raises(InvalidDefinitionError):
		load_library("typelib Demo 0.1.0\ndata A : U8?\ndata B : x A?\n")


def test_direct_cycle_rejected() -> None:
	with pytest.raises(CyclicDefinitionError) as excinfo:
		load_library("typelib Demo 0.1.0\ndata A : x B\ndata B : y A\n")
	assert excinfo.value.cycle[0] == excinfo.value.cycle[-1]
	assert set(excinfo.value.cycle) == {"A", "B"}
	with pytest.raises(CyclicDefinitionError):
		load_library("typelib Demo 0.1.0\ndata A : [A ^ 2]\n")
	with pytest.raises(CyclicDefinitionError):
		load_library("typelib Demo 0.1.0\ndata A : leaf = 0 | node(A) = 1\n")


def test_guarded_recursion_accepted() -> None:
	lib = load_library(
		"""
typelib Demo 0.1.0
data Tree  : value U8, children Trees
data Trees : [Tree ^ ..0xff]
data Chain : value U8, next Chain?
"""
	)
	assert isinstance(lib["Trees"], BoundedList)
	assert isinstance(lib["Chain"].fields[1].ty, Option)
	assert lib.semid("Tree") != lib.semid("Trees")


def test_deep_chain_loads_without_recursion() -> None:
	lines = ["typelib Deep 0.1.0", "data T0 : U8"]
	for i in range(1, 3000):
		lines.append(f"data T{i} : x T{i - 1}")
	lib = load_library("\n".join(lines) + "\n")
	assert len(lib.types) == 3000


def test_reverse_declared_chain_builds_a_codec() -> None:
	lines = ["typelib Deep 0.1.0"]
	for i in range(2999):
		lines.append(f"data T{i} : x T{i + 1}")
	lines.append("data T2999 : U8")
	lib = load_library("\n".join(lines) + "\n")
	codec = StrictCodec(lib.registry)
	assert codec.min_size("T0") == 1
	assert lib.semid("T0") != lib.semid("T1")


def _nested_arrays(levels: int) -> str:
	return "[" * levels + "U8" + " ^ 1]" * levels


def test_deep_inline_nesting_is_a_schema_error() -> None:
	with pytest.raises(InvalidDefinitionError, match="nested deeper than") as exc:
		load_library(f"typelib Deep 0.1.0\ndata Deep : {_nested_arrays(3000)}\n")
	assert exc.value.span.line == 2


def test_inline_nesting_up_to_the_limit_loads() -> None:
	lib = load_library(f"typelib Deep 0.1.0\ndata Deep : {_nested_arrays(MAX_TYPE_NESTING)}\n")
	assert StrictCodec(lib.registry).min_size("Deep") == 1
	with pytest.raises(InvalidDefinitionError):
		load_library(f"typelib Deep 0.1.0\ndata Deep : x {_nested_arrays(MAX_TYPE_NESTING + 1)}\n")


def test_zero_length_array_is_rejected() -> None:
	with pytest.raises(InvalidDefinitionError, match="at least 1"):
		load_library("typelib Z 0.1.0\ndata Z : [U8 ^ 0]\n")
	with pytest.raises(InvalidDefinitionError, match="at least 1"):
		load_library("typelib Z 0.1.0\ndata L : [[U16 ^ 0] ^ ..0xffff]\n")


def test_all_schema_errors_share_a_base() -> None:
	for source in ("typelib", "typelib D 0.1.0\ndata A : B\n", "typelib D 0.1.0\ndata A : x A\n"):
		with pytest.raises(SchemaError):
			load_library(source)


def test_identical_libraries_have_identical_ids() -> None:
	src = "typelib Demo 0.1.0\ndata A : x U8, y [U8 ^ ..0xff]\ndata B : a = 0 | b(A) = 1\n"
	assert load_library(src).library_id == load_library(src).library_id
	assert load_library(src).semid("B") == load_library(src.replace("Demo", "Other")).semid("B")


def test_id_sensitivity() -> None:
	base = load_library("typelib D 0.1.0\ndata Outpoint : txid [U8 ^ 32], vout U32\n").semid("Outpoint")
	renamed_type = load_library("typelib D 0.1.0\ndata Prevout : txid [U8 ^ 32], vout U32\n").semid("Prevout")
	renamed_field = load_library("typelib D 0.1.0\ndata Outpoint : txid [U8 ^ 32], index U32\n").semid("Outpoint")
	reordered = load_library("typelib D 0.1.0\ndata Outpoint : vout U32, txid [U8 ^ 32]\n").semid("Outpoint")
	assert renamed_type == base
	assert renamed_field != base
	assert reordered != base


def test_discriminant_change_changes_id() -> None:
	a = load_library("typelib D 0.1.0\ndata V : v0 = 0 | v1 = 81\n").semid("V")
	b = load_library("typelib D 0.1.0\ndata V : v0 = 0 | v1 = 82\n").semid("V")
	assert a != b
