"""Repository for the single ecobee token row."""

import logging
import sqlite3

from thermhub.errors import PersistError
from thermhub.models.token import Token
from thermhub.storage.database import from_db_time, to_db_time

logger = logging.getLogger(__name__)


def get_token(conn: sqlite3.Connection) -> Token | None:
    """Load the stored token, or None if the store holds none."""
    try:
        row = conn.execute(
            "SELECT access_token, refresh_token, expires FROM ecobee_token "
            "ORDER BY id LIMIT 1"
        ).fetchone()
    except sqlite3.Error as e:
        raise PersistError(f"cannot load token: {e}") from e
    if row is None:
        return None
    return Token(
        access_token=row["access_token"],
        refresh_token=row["refresh_token"],
        expires=from_db_time(row["expires"]),
    )


def save_token(conn: sqlite3.Connection, token: Token) -> Token | None:
    """Insert the first token or update the existing row in place.

    Returns the saved token, or None if the write failed.
    """
    params = (token.access_token, token.refresh_token, to_db_time(token.expires))
    try:
        row = conn.execute("SELECT id FROM ecobee_token ORDER BY id LIMIT 1").fetchone()
        if row is None:
            conn.execute(
                "INSERT INTO ecobee_token (access_token, refresh_token, expires) "
                "VALUES (?, ?, ?)",
                params,
            )
        else:
            conn.execute(
                "UPDATE ecobee_token SET access_token = ?, refresh_token = ?, "
                "expires = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (*params, row["id"]),
            )
        conn.commit()
    except sqlite3.Error:
        logger.exception("Failed to save ecobee token")
        conn.rollback()
        return None
    return token
