# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
import pytest

from strictypes.stlc.codec import StrictCodec
from strictypes.stlc.core.library import Library
from strictypes.stlc.schemas.well_known import bitcoin_library


@pytest.fixture(scope="session")
def bitcoin() -> Library:
	return bitcoin_library()


@pytest.fixture(scope="session")
def btc_codec(bitcoin: Library) -> StrictCodec:
	return StrictCodec(bitcoin.registry)
