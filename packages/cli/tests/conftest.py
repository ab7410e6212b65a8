import sqlite3
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[3]
PACKAGES = ROOT / "packages"

paths = [
    PACKAGES / "driver-sdk" / "src",
    PACKAGES / "driver-sqlalchemy" / "src",
    PACKAGES / "drivers" / "sqlserver" / "src",
    PACKAGES / "drivers" / "postgres" / "src",
    PACKAGES / "drivers" / "mysql" / "src",
    PACKAGES / "drivers" / "sqlite" / "src",
    PACKAGES / "core" / "src",
    PACKAGES / "cli" / "src",
]

for path in paths:
    sys.path.insert(0, str(path))


@pytest.fixture()
def databases_config(tmp_path):
    db_path = tmp_path / "birds.db"
    conn = sqlite3.connect(db_path)
    try:
        conn.executescript(
            """
            CREATE TABLE birds (id INTEGER PRIMARY KEY, name TEXT);
            INSERT INTO birds (name) VALUES ('Toucan'), ('Kiwi');
            """
        )
        conn.commit()
    finally:
        conn.close()

    config = tmp_path / "databases.yaml"
    config.write_text(f"version: 1\ndatabases:\n  - id: 1\n    name: Birds\n    engine: sqlite\n    details:\n      db: {db_path}\n")
    return config
