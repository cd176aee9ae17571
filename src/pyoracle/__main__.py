"""Allow ``python -m pyoracle``."""

import sys

from pyoracle.cli import main

sys.exit(main())
