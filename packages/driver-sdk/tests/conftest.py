import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[3]
SDK_SRC = ROOT / "packages" / "driver-sdk" / "src"

sys.path.insert(0, str(SDK_SRC))
