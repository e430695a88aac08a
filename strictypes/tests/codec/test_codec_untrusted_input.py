# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from strictypes.stlc.codec import DecodeOptions, EnumValue, StrictCodec
from strictypes.stlc.core.errors import (
	BoundsExceededError,
	DecodeError,
	DepthExceededError,
	EncodeError,
	InvalidDiscriminantError,
	TruncatedInputError,
)
from strictypes.stlc.loader import load_library

SCHEMA = """
typelib Demo 0.1.0
data Hash    : [U8 ^ 32]
data Small   : [U8 ^ ..3]
data Medium  : [U16 ^ ..0x1000]
data Hashes  : [Hash ^ ..0xffff]
data Pair    : a U16, b Small
data Pairs   : [Pair ^ ..0xffffffff]
data Chain   : value U8, next Chain?
data Wide    : <U16> a = 0 | b(Pair) = 300
"""


@pytest.fixture(scope="module")
def codec() -> StrictCodec:
	return StrictCodec(load_library(SCHEMA).registry)


def test_truncated_fixed_array(codec: StrictCodec) -> None:
	with pytest.raises(TruncatedInputError) as excinfo:
		codec.decode("Hash", bytes(31))
	err = excinfo.value
	assert err.offset == 0
	assert err.needed == 32
	assert err.available == 31


def test_every_prefix_of_a_valid_encoding_is_truncated(codec: StrictCodec) -> None:
	data = codec.encode("Pair", {"a": 7, "b": b"xyz"})
	assert len(data) == 2 + 1 + 3
	for cut in range(len(data)):
		with pytest.raises(TruncatedInputError):
			codec.decode("Pair", data[:cut])


def test_truncated_at_offset_reports_position(codec: StrictCodec) -> None:
	with pytest.raises(TruncatedInputError) as excinfo:
		codec.decode("Pair", b"\xff\xff\x01\x02\x03\x41", 2)
	assert excinfo.value.offset == 5
	assert excinfo.value.available == 1


def test_length_prefix_above_declared_bound(codec: StrictCodec) -> None:
	with pytest.raises(BoundsExceededError) as excinfo:
		codec.decode("Small", b"\x04abcd")
	err = excinfo.value
	assert err.limit == 3
	assert err.got == 4
	assert err.offset == 0
	assert isinstance(err, DecodeError)


def test_length_prefix_above_caller_cap(codec: StrictCodec) -> None:
	data = codec.encode("Medium", [1, 2, 3, 4])
	assert data[:2] == b"\x04\x00"
	with pytest.raises(BoundsExceededError) as excinfo:
		codec.decode("Medium", data, options=DecodeOptions(max_elements=3))
	assert excinfo.value.limit == 3
	assert codec.decode("Medium", data, options=DecodeOptions(max_elements=4)) == ([1, 2, 3, 4], 10)


def test_huge_claimed_count_fails_before_allocation(codec: StrictCodec) -> None:
	# 0xffffffff elements of at least 3 bytes each cannot fit in 4 remaining bytes.
	with pytest.raises(TruncatedInputError) as excinfo:
		codec.decode("Pairs", b"\xff\xff\xff\xff" + b"\x00" * 4)
	assert excinfo.value.needed == 0xFFFFFFFF * 3
	assert excinfo.value.available == 4


def test_huge_claimed_byte_string_fails(codec: StrictCodec) -> None:
	with pytest.raises(TruncatedInputError):
		codec.decode("Hashes", b"\xff\xff" + bytes(64))


def test_invalid_option_flag(codec: StrictCodec) -> None:
	with pytest.raises(InvalidDiscriminantError) as excinfo:
		codec.decode("Chain", b"\x01\x02")
	assert excinfo.value.offset == 1
	assert excinfo.value.value == 2


def test_wide_tag_layout(codec: StrictCodec) -> None:
	value = EnumValue("b", {"a": 1, "b": b""})
	data = codec.encode("Wide", value)
	assert data == b"\x2c\x01" + b"\x01\x00" + b"\x00"
	assert codec.decode("Wide", data) == (value, 5)
	with pytest.raises(InvalidDiscriminantError):
		codec.decode("Wide", b"\x01\x00")


def test_recursive_values_round_trip(codec: StrictCodec) -> None:
	chain = {"value": 1, "next": {"value": 2, "next": {"value": 3, "next": None}}}
	data = codec.encode("Chain", chain)
	assert data == b"\x01\x01\x02\x01\x03\x00"
	assert codec.decode("Chain", data) == (chain, 6)


def test_depth_cap_stops_deep_nesting(codec: StrictCodec) -> None:
	data = b"\x00\x01" * 200 + b"\x00\x00"
	with pytest.raises(DepthExceededError):
		codec.decode("Chain", data)
	value, consumed = codec.decode("Chain", data, options=DecodeOptions(max_depth=1000))
	assert consumed == len(data)


def test_trailing_bytes_rejected_by_decode_exact(codec: StrictCodec) -> None:
	assert codec.decode_exact("Hash", bytes(32)) == bytes(32)
	with pytest.raises(DecodeError, match="trailing"):
		codec.decode_exact("Hash", bytes(33))


def test_decode_errors_are_value_errors(codec: StrictCodec) -> None:
	with pytest.raises(ValueError):
		codec.decode("Hash", b"")


def test_encode_and_decode_errors_are_distinct(codec: StrictCodec) -> None:
	with pytest.raises(EncodeError):
		codec.encode("Small", b"abcd")
	assert not issubclass(TruncatedInputError, EncodeError)


def test_unknown_type_name(codec: StrictCodec) -> None:
	with pytest.raises(KeyError):
		codec.decode("Nope", b"")


def test_min_size(codec: StrictCodec) -> None:
	assert codec.min_size("Hash") == 32
	assert codec.min_size("Pair") == 3
	assert codec.min_size("Chain") == 2
	assert codec.min_size("Wide") == 2
