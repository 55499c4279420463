"""Entry point for `python -m kubegraph`."""

import sys

from kubegraph.cli import main

sys.exit(main())
