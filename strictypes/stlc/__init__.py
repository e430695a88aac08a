# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
strictypes schema compiler package (`stlc`).

The CLI entrypoint is `strictypes.stlc.stlc:main`.
"""

__all__ = []
