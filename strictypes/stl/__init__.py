# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
`stl` tooling package.

`stl` is the user-facing tool: value encode/decode against loaded libraries
and semantic id printing.
"""

__all__ = []
