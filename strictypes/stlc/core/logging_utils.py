# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Root logging setup shared by the `stlc` and `stl` command lines."""

from __future__ import annotations

import logging
import sys
from typing import Optional


class _MaxLevelFilter(logging.Filter):
	def __init__(self, max_level: int) -> None:
		super().__init__()
		self._max_level = max_level

	def filter(self, record: logging.LogRecord) -> bool:
		return record.levelno <= self._max_level


def verbosity_level(verbose: int) -> int:
	if verbose >= 2:
		return logging.DEBUG
	if verbose == 1:
		return logging.INFO
	return logging.WARNING


def configure_logging(
	*,
	level: int = logging.WARNING,
	stderr_level: int = logging.WARNING,
	formatter: Optional[logging.Formatter] = None,
) -> None:
	"""
	Configure root logging with a split stream pair:

	- records below `stderr_level` go to stdout,
	- `stderr_level` and above go to stderr.
	"""
	root = logging.getLogger()
	root.handlers.clear()
	root.setLevel(level)

	if formatter is None:
		formatter = logging.Formatter("%(name)s - %(levelname)s - %(message)s")

	stderr_level = max(stderr_level, logging.DEBUG)

	stdout_handler = logging.StreamHandler(stream=sys.stdout)
	stdout_handler.setLevel(logging.DEBUG)
	stdout_handler.addFilter(_MaxLevelFilter(stderr_level - 1))
	stdout_handler.setFormatter(formatter)

	stderr_handler = logging.StreamHandler(stream=sys.stderr)
	stderr_handler.setLevel(stderr_level)
	stderr_handler.setFormatter(formatter)

	root.addHandler(stdout_handler)
	root.addHandler(stderr_handler)


__all__ = ["configure_logging", "verbosity_level"]
