"""
Run the inspection CLI.

Usage:
    python -m tarkov_progress format USER_ID --tasks tasks.json --hideout hideout.json
"""

import sys

from .interface.cli import main

sys.exit(main())
