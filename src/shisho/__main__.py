"""Allow ``python -m shisho``."""

from __future__ import annotations

import sys

from shisho.cli import main

sys.exit(main())
