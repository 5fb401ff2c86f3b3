"""Initial schema: ecobee token row and append-only thermostat readings."""

import sqlite3

DDL = [
    # Single ecobee credential row, updated in place on refresh
    """
    CREATE TABLE IF NOT EXISTS ecobee_token (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        access_token TEXT NOT NULL,
        refresh_token TEXT NOT NULL,
        expires TEXT NOT NULL,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,

    # Historical sensor and weather-station readings
    """
    CREATE TABLE IF NOT EXISTS thermostats (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        time TEXT NOT NULL,
        is_hygrostat INTEGER NOT NULL,
        temperature INTEGER NOT NULL,
        relative_humidity INTEGER NOT NULL,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_thermostats_time ON thermostats(time)",
]


def up(conn: sqlite3.Connection) -> None:
    for stmt in DDL:
        conn.execute(stmt)
    conn.commit()
