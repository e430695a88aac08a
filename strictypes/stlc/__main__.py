# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
import sys

from strictypes.stlc.stlc import main

sys.exit(main())
