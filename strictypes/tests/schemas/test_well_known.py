# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from strictypes.stlc.core.types_core import Enum, ExternRef, Struct
from strictypes.stlc.schemas.well_known import bitcoin_library, std_library, well_known_index


def test_bundled_libraries_load() -> None:
	index = well_known_index()
	std = index.get("Std", "0.1.0")
	btc = index.get("Bitcoin", "0.1.0")
	assert std is not None and btc is not None
	assert isinstance(std.types["Bool"], Enum)
	assert isinstance(btc.types["Tx"], Struct)
	assert btc.imports["Bool"].semid == std.semid("Bool")


def test_bundled_ids_are_stable_across_loads() -> None:
	a = bitcoin_library()
	b = bitcoin_library(std=std_library())
	assert a.library_id == b.library_id
	assert all(a.semid(name) == b.semid(name) for name in a.types)


def test_imported_bool_is_an_extern_ref() -> None:
	btc = bitcoin_library()
	sighash = btc.types["SighashType"]
	assert isinstance(sighash, Struct)
	assert isinstance(sighash.fields[1].ty, ExternRef)


def test_wrappers_share_ids() -> None:
	btc = bitcoin_library()
	assert btc.semid("SigScript") == btc.semid("ScriptBytes")
	assert btc.semid("Txid") == btc.semid("BlockHash")
	assert btc.semid("ScriptBytes") == btc.semid("ByteStr")
