# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
import logging

import pytest


@pytest.fixture(autouse=True)
def _restore_root_logging():
	"""
	The CLIs reconfigure the root logger around the captured streams.

	Put the previous handlers back so later tests do not log into closed files.
	"""
	root = logging.getLogger()
	handlers = list(root.handlers)
	level = root.level
	yield
	root.handlers[:] = handlers
	root.setLevel(level)
