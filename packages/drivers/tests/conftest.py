import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[3]
DRIVERS_ROOT = ROOT / "packages" / "drivers"

paths = [
    ROOT / "packages" / "driver-sdk" / "src",
    ROOT / "packages" / "driver-sqlalchemy" / "src",
    DRIVERS_ROOT / "sqlite" / "src",
    DRIVERS_ROOT / "postgres" / "src",
    DRIVERS_ROOT / "mysql" / "src",
    DRIVERS_ROOT / "sqlserver" / "src",
]

for path in paths:
    sys.path.insert(0, str(path))
