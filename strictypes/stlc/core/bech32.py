# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Pure-Python bech32 (BIP-173 checksum) plus the three text forms used for
strict-encoded data:

- `id1...`   a 32-byte identifier (semantic id, library id),
- `data1...` raw strict-encoded payload bytes,
- `z1...`    payload compressed with raw DEFLATE, prefixed by an encoding byte.

Unlike address encoding there is no 90-character limit: payloads of any size
are accepted.
"""

from __future__ import annotations

import zlib
from typing import Iterable, List, Sequence

from .errors import StrictTypesError

CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_CHARSET_REV = {c: i for i, c in enumerate(CHARSET)}
_GENERATOR = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)
_CHECKSUM_CONST = 1

HRP_ID = "id"
HRP_DATA = "data"
HRP_ZIP = "z"

RAW_DATA_ENCODING_DEFLATE = 0x01
# Inflated size cap for untrusted `z1...` input.
MAX_INFLATED_SIZE = 16 * 1024 * 1024


class Bech32Error(StrictTypesError, ValueError):
	reason_code = "bech32"
	phase = "bech32"


class WrongPrefixError(Bech32Error):
	reason_code = "bech32-wrong-prefix"

	def __init__(self, expected: str, got: str) -> None:
		super().__init__(f"bech32 prefix mismatch: expected '{expected}', got '{got}'")
		self.expected = expected
		self.got = got


class UnknownEncodingError(Bech32Error):
	reason_code = "bech32-unknown-encoding"

	def __init__(self, code: int) -> None:
		super().__init__(f"unknown raw data encoding {code:#04x}")
		self.code = code


def _polymod(values: Iterable[int]) -> int:
	chk = 1
	for v in values:
		top = chk >> 25
		chk = ((chk & 0x1FFFFFF) << 5) ^ v
		for i in range(5):
			if (top >> i) & 1:
				chk ^= _GENERATOR[i]
	return chk


def _hrp_expand(hrp: str) -> List[int]:
	return [ord(c) >> 5 for c in hrp] + [0] + [ord(c) & 31 for c in hrp]


def _create_checksum(hrp: str, data: Sequence[int]) -> List[int]:
	polymod = _polymod(_hrp_expand(hrp) + list(data) + [0] * 6) ^ _CHECKSUM_CONST
	return [(polymod >> 5 * (5 - i)) & 31 for i in range(6)]


def convertbits(data: Iterable[int], frombits: int, tobits: int, *, pad: bool) -> List[int]:
	"""Regroup a sequence of `frombits`-wide values into `tobits`-wide values."""
	acc = 0
	bits = 0
	out: List[int] = []
	maxv = (1 << tobits) - 1
	for value in data:
		if value < 0 or value >> frombits:
			raise Bech32Error(f"invalid {frombits}-bit value {value}")
		acc = (acc << frombits) | value
		bits += frombits
		while bits >= tobits:
			bits -= tobits
			out.append((acc >> bits) & maxv)
	if pad:
		if bits:
			out.append((acc << (tobits - bits)) & maxv)
	elif bits >= frombits or ((acc << (tobits - bits)) & maxv):
		raise Bech32Error("invalid padding in bech32 data part")
	return out


def bech32_encode(hrp: str, payload: bytes) -> str:
	"""Encode `payload` bytes under human-readable part `hrp`."""
	if not hrp or any(ord(c) < 33 or ord(c) > 126 for c in hrp):
		raise Bech32Error(f"invalid human-readable part '{hrp}'")
	hrp = hrp.lower()
	data = convertbits(payload, 8, 5, pad=True)
	return hrp + "1" + "".join(CHARSET[d] for d in data + _create_checksum(hrp, data))


def bech32_decode(text: str) -> tuple[str, bytes]:
	"""Decode a bech32 string into (hrp, payload bytes)."""
	if text.lower() != text and text.upper() != text:
		raise Bech32Error("bech32 string mixes upper and lower case")
	text = text.lower()
	pos = text.rfind("1")
	if pos < 1:
		raise Bech32Error("bech32 string is missing the separator or human-readable part")
	if pos + 7 > len(text):
		raise Bech32Error("bech32 data part is shorter than the checksum")
	hrp = text[:pos]
	if any(ord(c) < 33 or ord(c) > 126 for c in hrp):
		raise Bech32Error("bech32 human-readable part contains invalid characters")
	data: List[int] = []
	for c in text[pos + 1:]:
		d = _CHARSET_REV.get(c)
		if d is None:
			raise Bech32Error(f"invalid bech32 character '{c}'")
		data.append(d)
	if _polymod(_hrp_expand(hrp) + data) != _CHECKSUM_CONST:
		raise Bech32Error("invalid bech32 checksum")
	return hrp, bytes(convertbits(data[:-6], 5, 8, pad=False))


def _expect_hrp(text: str, hrp: str) -> bytes:
	got, payload = bech32_decode(text)
	if got != hrp:
		raise WrongPrefixError(hrp, got)
	return payload


def encode_id(digest: bytes) -> str:
	return bech32_encode(HRP_ID, digest)


def decode_id(text: str) -> bytes:
	payload = _expect_hrp(text, HRP_ID)
	if len(payload) != 32:
		raise Bech32Error(f"identifier payload must be 32 bytes, got {len(payload)}")
	return payload


def encode_data(payload: bytes) -> str:
	return bech32_encode(HRP_DATA, payload)


def decode_data(text: str) -> bytes:
	return _expect_hrp(text, HRP_DATA)


def encode_zip(payload: bytes) -> str:
	comp = zlib.compressobj(9, zlib.DEFLATED, -15)
	data = bytes([RAW_DATA_ENCODING_DEFLATE]) + comp.compress(payload) + comp.flush()
	return bech32_encode(HRP_ZIP, data)


def decode_zip(text: str, *, max_size: int = MAX_INFLATED_SIZE) -> bytes:
	"""Decode a `z1...` string; inflating past `max_size` bytes is an error."""
	data = _expect_hrp(text, HRP_ZIP)
	if not data:
		raise Bech32Error("empty compressed payload")
	if data[0] != RAW_DATA_ENCODING_DEFLATE:
		raise UnknownEncodingError(data[0])
	inflater = zlib.decompressobj(-15)
	try:
		out = inflater.decompress(data[1:], max_size + 1)
	except zlib.error as err:
		raise Bech32Error(f"error inflating compressed payload: {err}") from err
	if len(out) > max_size:
		raise Bech32Error(f"compressed payload inflates past {max_size} bytes")
	if not inflater.eof:
		raise Bech32Error("error inflating compressed payload: truncated stream")
	return out


__all__ = [
	"Bech32Error",
	"WrongPrefixError",
	"UnknownEncodingError",
	"HRP_ID",
	"HRP_DATA",
	"HRP_ZIP",
	"MAX_INFLATED_SIZE",
	"bech32_encode",
	"bech32_decode",
	"convertbits",
	"encode_id",
	"decode_id",
	"encode_data",
	"decode_data",
	"encode_zip",
	"decode_zip",
]
