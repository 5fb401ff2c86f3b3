"""Repository for historical thermostat readings."""

import sqlite3
from datetime import datetime

from thermhub.errors import PersistError
from thermhub.models.reading import Reading
from thermhub.storage.database import from_db_time, to_db_time


def insert_reading(conn: sqlite3.Connection, reading: Reading) -> int:
    """Append one reading. Returns the row id."""
    try:
        cursor = conn.execute(
            "INSERT INTO thermostats "
            "(name, time, is_hygrostat, temperature, relative_humidity) "
            "VALUES (?, ?, ?, ?, ?)",
            (
                reading.name,
                to_db_time(reading.time),
                int(reading.is_hygrostat),
                reading.temperature,
                reading.relative_humidity,
            ),
        )
        conn.commit()
    except sqlite3.Error as e:
        raise PersistError(f"cannot insert reading for {reading.name}: {e}") from e
    assert cursor.lastrowid is not None
    return cursor.lastrowid


def query_readings(
    conn: sqlite3.Connection, start: datetime, end: datetime
) -> list[Reading]:
    """Readings with start <= time <= end, oldest first."""
    try:
        rows = conn.execute(
            "SELECT name, time, is_hygrostat, temperature, relative_humidity "
            "FROM thermostats WHERE time >= ? AND time <= ? ORDER BY time, id",
            (to_db_time(start), to_db_time(end)),
        ).fetchall()
    except sqlite3.Error as e:
        raise PersistError(f"cannot query readings: {e}") from e
    return [
        Reading(
            name=r["name"],
            time=from_db_time(r["time"]),
            temperature=r["temperature"],
            relative_humidity=r["relative_humidity"],
            is_hygrostat=bool(r["is_hygrostat"]),
        )
        for r in rows
    ]


def count_readings(conn: sqlite3.Connection) -> int:
    return conn.execute("SELECT COUNT(*) FROM thermostats").fetchone()[0]
