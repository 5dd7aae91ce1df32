"""
Tenant & Playlist Database Operations
=====================================

Minimal tenant and playlist storage. Schedules only need to know that a
playlist exists and which tenant owns it; media and playlist contents live
elsewhere.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import TYPE_CHECKING, Any

from signage.domain.exceptions import RepositoryError
from signage.utils.time import iso_now

if TYPE_CHECKING:
    from sqlite3 import Connection

logger = logging.getLogger(__name__)


class PlaylistOperations:
    """Tenant and playlist helpers for database handlers."""

    def get_db(self) -> "Connection":
        """Get database connection. Must be implemented by mixing class."""
        raise NotImplementedError("Subclass must implement get_db()")

    def insert_tenant(self, name: str) -> int:
        """Insert a tenant and return its ID."""
        db = self.get_db()
        try:
            cursor = db.execute(
                "INSERT INTO Tenants (name, created_at) VALUES (?, ?)",
                (name, iso_now()),
            )
            db.commit()
        except sqlite3.Error as e:
            logger.error("Error inserting tenant %r: %s", name, e)
            raise RepositoryError("Failed to create tenant") from e
        return int(cursor.lastrowid)

    def insert_playlist(self, tenant_id: int, name: str) -> int:
        """Insert a playlist owned by *tenant_id* and return its ID."""
        db = self.get_db()
        try:
            cursor = db.execute(
                "INSERT INTO Playlists (tenant_id, name, created_at) VALUES (?, ?, ?)",
                (tenant_id, name, iso_now()),
            )
            db.commit()
        except sqlite3.Error as e:
            logger.error("Error inserting playlist %r for tenant %s: %s", name, tenant_id, e)
            raise RepositoryError("Failed to create playlist") from e
        return int(cursor.lastrowid)

    def get_playlist(self, playlist_id: int) -> dict[str, Any] | None:
        db = self.get_db()
        try:
            row = db.execute(
                "SELECT playlist_id, tenant_id, name FROM Playlists WHERE playlist_id = ?",
                (playlist_id,),
            ).fetchone()
        except sqlite3.Error as e:
            logger.error("Error getting playlist %s: %s", playlist_id, e)
            raise RepositoryError("Failed to load playlist") from e
        return dict(row) if row else None

    def get_playlist_tenant_id(self, playlist_id: int) -> int | None:
        playlist = self.get_playlist(playlist_id)
        if playlist is None:
            return None
        return playlist["tenant_id"]
