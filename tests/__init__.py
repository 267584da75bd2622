"""
Test package for layerconf.

Unit tests live under ``unit/<area>``, real-filesystem and end-to-end
scenarios under ``integration``, and test doubles under ``mocks``.
"""

import sys
from pathlib import Path

# Add source directory to Python path for testing
test_dir = Path(__file__).parent
src_dir = test_dir.parent / "src"

if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))
