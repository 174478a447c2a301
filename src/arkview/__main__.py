"""Allow ``python -m arkview``."""

import sys

from arkview.cli import main

sys.exit(main())
