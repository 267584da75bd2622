"""Allow ``python -m layerconf``."""

import sys

from .cli import main

sys.exit(main())
