# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Library artifacts.

- library_cache_v0: canonical JSON cache of a loaded Library, named by its
  library id and verified on reload.
"""

from __future__ import annotations

__all__ = [
	"library_cache_v0",
]
