#!/usr/bin/env python3
"""nutpp Runner Script

This script properly sets up the Python path and runs the preprocessor.
"""

import sys
from pathlib import Path

# Add src to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / 'src'))

# Now import and run the preprocessor
from nutpp.main import main

if __name__ == '__main__':
    sys.exit(main())
