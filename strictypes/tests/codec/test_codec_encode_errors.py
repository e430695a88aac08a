# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from strictypes.stlc.codec import EnumValue, StrictCodec
from strictypes.stlc.core.errors import (
	BoundsExceededError,
	MissingFieldError,
	UnexpectedFieldError,
	ValueOutOfRangeError,
)
from strictypes.stlc.core.types_core import PRIMITIVES, BoundedList, FixedArray
from strictypes.stlc.loader import load_library

SCHEMA = """
typelib Demo 0.1.0
data Point : x I8, y U8
data Kind  : plain = 0 | tagged(U8) = 1
data Bytes : [U8 ^ ..2]
data Maybe : some(U8?) = 0 | none = 1
"""


@pytest.fixture(scope="module")
def codec() -> StrictCodec:
	return StrictCodec(load_library(SCHEMA).registry)


def test_integer_range(codec: StrictCodec) -> None:
	assert codec.encode("Point", {"x": -128, "y": 255}) == b"\x80\xff"
	with pytest.raises(ValueOutOfRangeError) as excinfo:
		codec.encode("Point", {"x": 128, "y": 0})
	assert excinfo.value.path == "Point.x"
	with pytest.raises(ValueOutOfRangeError):
		codec.encode("Point", {"x": 0, "y": -1})
	with pytest.raises(ValueOutOfRangeError):
		codec.encode("Point", {"x": True, "y": 0})


def test_missing_and_unexpected_fields(codec: StrictCodec) -> None:
	with pytest.raises(MissingFieldError, match="'y'"):
		codec.encode("Point", {"x": 0})
	with pytest.raises(UnexpectedFieldError, match="z"):
		codec.encode("Point", {"x": 0, "y": 0, "z": 1})


def test_bounded_list_over_maximum(codec: StrictCodec) -> None:
	with pytest.raises(BoundsExceededError) as excinfo:
		codec.encode("Bytes", b"abc")
	assert excinfo.value.limit == 2
	assert excinfo.value.got == 3
	assert excinfo.value.offset is None


def test_fixed_array_wrong_length(codec: StrictCodec) -> None:
	arr = FixedArray(PRIMITIVES["U16"], 2)
	assert codec.encode(arr, [1, 2]) == b"\x01\x00\x02\x00"
	with pytest.raises(ValueOutOfRangeError, match="exactly 2"):
		codec.encode(arr, [1])


def test_byte_sequences_require_bytes(codec: StrictCodec) -> None:
	with pytest.raises(ValueOutOfRangeError, match="expected bytes"):
		codec.encode("Bytes", [1, 2])
	assert codec.encode(BoundedList(PRIMITIVES["U16"], 3), (1,)) == b"\x01\x01\x00"


def test_enum_variants(codec: StrictCodec) -> None:
	assert codec.encode("Kind", "plain") == b"\x00"
	assert codec.encode("Kind", EnumValue("tagged", 9)) == b"\x01\x09"
	with pytest.raises(ValueOutOfRangeError, match="unknown variant"):
		codec.encode("Kind", "other")
	with pytest.raises(MissingFieldError):
		codec.encode("Kind", "tagged")
	with pytest.raises(UnexpectedFieldError):
		codec.encode("Kind", EnumValue("plain", 1))
	with pytest.raises(ValueOutOfRangeError):
		codec.encode("Kind", 0)


def test_optional_payload_round_trips(codec: StrictCodec) -> None:
	for value, encoded in (
		(EnumValue("some", None), b"\x00\x00"),
		(EnumValue("some", 7), b"\x00\x01\x07"),
		(EnumValue("none"), b"\x01"),
	):
		assert codec.encode("Maybe", value) == encoded
		assert codec.decode("Maybe", encoded) == (value, len(encoded))
	assert codec.encode("Maybe", "some") == b"\x00\x00"
