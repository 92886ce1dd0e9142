"""Allow running the CLI with ``python -m libbids``."""

import sys

from .cli.main import main

sys.exit(main())
