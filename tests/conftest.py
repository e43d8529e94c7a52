import sys
from pathlib import Path

# Ensure govee_lan_protocol and the test helpers are importable when running tests directly
ROOT = Path(__file__).resolve().parents[1]
for path in (ROOT, ROOT / "tests"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))
