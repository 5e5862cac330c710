import sys
from pathlib import Path

# Make the src/ packages (common, dal, telemetry_api) importable without an install.
ROOT_DIR = Path(__file__).parent.absolute()
src_dir = ROOT_DIR / "src"

if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))
