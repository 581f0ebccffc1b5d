"""
Pytest configuration and fixtures for daggerforge tests.
"""

import os
import sys
import tempfile
from pathlib import Path

# Add src directory to Python path to allow importing daggerforge
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

# Keep the server module's card store out of the working directory
os.environ.setdefault("DAGGERFORGE_DATA_DIR", tempfile.mkdtemp(prefix="daggerforge-test-"))
