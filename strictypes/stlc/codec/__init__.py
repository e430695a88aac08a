# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Strict binary codec and the Python value model it works with."""

from .strict_codec import DecodeOptions, StrictCodec, decode_value, encode_value
from .values import EnumValue, from_json, to_json

__all__ = [
	"DecodeOptions",
	"EnumValue",
	"StrictCodec",
	"decode_value",
	"encode_value",
	"from_json",
	"to_json",
]
