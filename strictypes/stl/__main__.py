# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
import sys

from strictypes.stl.cli import main

sys.exit(main())
