import os
from pathlib import Path

from dotenv import load_dotenv

from shared.constants import DEFAULT_DATA_DIR, DEFAULT_SCAN_WORKERS

load_dotenv()

# Paths
DATA_DIR = Path(os.getenv("KPLAYER_DATA_DIR", DEFAULT_DATA_DIR)).expanduser()

# Scanner
try:
    SCAN_WORKERS = max(1, int(os.getenv("KPLAYER_SCAN_WORKERS", DEFAULT_SCAN_WORKERS)))
except ValueError:
    SCAN_WORKERS = DEFAULT_SCAN_WORKERS
