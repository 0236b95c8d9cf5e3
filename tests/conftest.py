"""Pytest configuration shared by all test suites"""

import os
import sys
from pathlib import Path

# Add project root to path for src imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# src.main configures file logging on import - keep test logs out of the project
os.environ.setdefault("LOG_FILE", str(Path(__file__).parent / ".logs" / "patent-search-test.log"))
