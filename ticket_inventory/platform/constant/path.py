import os
from pathlib import Path


# Repository root (ticket_inventory/platform/constant/path.py -> ../../..)
BASE_DIR = Path(__file__).resolve().parents[3]

# Tests redirect logs next to the test suite
LOG_DIR = Path(os.environ.get('TEST_LOG_DIR') or BASE_DIR / 'logs')
