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
]

for path in paths:
    sys.path.insert(0, str(path))


LONG_NOTE = "Spends most of the day perched high in the canopy calling to the rest of its flock."


@pytest.fixture()
def sqlite_db_path(tmp_path):
    """A small SQLite database with a primary key, a foreign key, a URL column and long text."""
    db_path = tmp_path / "aviary.db"
    conn = sqlite3.connect(db_path)
    try:
        conn.executescript(
            """
            CREATE TABLE families (id INTEGER PRIMARY KEY, name TEXT);
            CREATE TABLE birds (
                id INTEGER PRIMARY KEY,
                name TEXT,
                homepage TEXT,
                notes TEXT,
                family_id INTEGER REFERENCES families(id)
            );
            """
        )
        conn.executemany("INSERT INTO families (name) VALUES (?)", [("Ramphastidae",), ("Apterygidae",)])
        conn.executemany(
            "INSERT INTO birds (name, homepage, notes, family_id) VALUES (?, ?, ?, ?)",
            [
                ("Toucan", "http://toucan.org", LONG_NOTE, 1),
                ("Kiwi", "https://kiwi.nz/about", LONG_NOTE, 2),
            ],
        )
        conn.commit()
    finally:
        conn.close()
    return db_path
