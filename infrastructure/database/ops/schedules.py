"""
Schedule Database Operations
=============================

Database operations for the PlaylistSchedules table.
Implements the storage side of the ScheduleRepository protocol.

Failures are logged and re-raised as RepositoryError: a read that silently
returned nothing would let an overlapping schedule through validation.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from typing import TYPE_CHECKING, Any

from signage.domain.exceptions import RepositoryError
from signage.domain.schedules.schedule_entity import PlaylistSchedule
from signage.utils.time import utc_now

if TYPE_CHECKING:
    from sqlite3 import Connection

logger = logging.getLogger(__name__)


class ScheduleOperations:
    """Playlist schedule CRUD helpers for database handlers."""

    def get_db(self) -> "Connection":
        """Get database connection. Must be implemented by mixing class."""
        raise NotImplementedError("Subclass must implement get_db()")

    # =========================================================================
    # CRUD Operations
    # =========================================================================

    def create_schedule(self, schedule: PlaylistSchedule) -> PlaylistSchedule:
        """
        Create a new schedule in the database.

        Args:
            schedule: Schedule to create (schedule_id should be None)

        Returns:
            Created schedule with assigned schedule_id
        """
        db = self.get_db()
        now = utc_now()

        try:
            cursor = db.execute(
                """
                INSERT INTO PlaylistSchedules (
                    tenant_id, playlist_id, name,
                    start_date, end_date, start_time, end_time,
                    days_of_week, priority, is_active,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    schedule.tenant_id,
                    schedule.playlist_id,
                    schedule.name,
                    *self._schedule_values(schedule),
                    now.isoformat(),
                    now.isoformat(),
                ),
            )
            db.commit()
        except sqlite3.Error as e:
            logger.error("Error creating schedule for tenant %s: %s", schedule.tenant_id, e)
            raise RepositoryError("Failed to create schedule") from e

        schedule.schedule_id = cursor.lastrowid
        schedule.created_at = now
        schedule.updated_at = now

        logger.info(
            "Created schedule %s (playlist %s) for tenant %s",
            schedule.schedule_id,
            schedule.playlist_id,
            schedule.tenant_id,
        )
        return schedule

    def get_schedule_by_id(self, schedule_id: int) -> PlaylistSchedule | None:
        """
        Get schedule by ID.

        Args:
            schedule_id: Schedule ID

        Returns:
            Schedule if found, None otherwise
        """
        db = self.get_db()

        try:
            row = db.execute(
                "SELECT * FROM PlaylistSchedules WHERE schedule_id = ?",
                (schedule_id,),
            ).fetchone()
        except sqlite3.Error as e:
            logger.error("Error getting schedule %s: %s", schedule_id, e)
            raise RepositoryError("Failed to load schedule") from e

        if row:
            return self._row_to_schedule(dict(row))
        return None

    def get_active_schedules_for_tenant(
        self,
        tenant_id: int,
        exclude_id: int | None = None,
    ) -> list[PlaylistSchedule]:
        """
        Get all active schedules of a tenant, oldest first.

        Args:
            tenant_id: Tenant ID
            exclude_id: Schedule ID to leave out

        Returns:
            List of active schedules
        """
        db = self.get_db()
        query = "SELECT * FROM PlaylistSchedules WHERE tenant_id = ? AND is_active = 1"
        params: list[Any] = [tenant_id]
        if exclude_id is not None:
            query += " AND schedule_id != ?"
            params.append(exclude_id)
        query += " ORDER BY schedule_id"

        try:
            rows = db.execute(query, params).fetchall()
        except sqlite3.Error as e:
            logger.error("Error getting active schedules for tenant %s: %s", tenant_id, e)
            raise RepositoryError("Failed to load active schedules") from e

        return [self._row_to_schedule(dict(row)) for row in rows]

    def get_schedules_for_tenant(
        self,
        tenant_id: int,
        *,
        playlist_id: int | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> list[PlaylistSchedule]:
        """
        Get the schedules of a tenant, optionally filtered.

        Args:
            tenant_id: Tenant ID
            playlist_id: Only schedules of this playlist
            is_active: Only active (True) or inactive (False) schedules
            search: Case-insensitive substring of the schedule name

        Returns:
            Schedules ordered by priority (highest first), then ID
        """
        db = self.get_db()
        query = "SELECT * FROM PlaylistSchedules WHERE tenant_id = ?"
        params: list[Any] = [tenant_id]

        if playlist_id is not None:
            query += " AND playlist_id = ?"
            params.append(playlist_id)
        if is_active is not None:
            query += " AND is_active = ?"
            params.append(1 if is_active else 0)
        if search:
            escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            query += " AND LOWER(name) LIKE ? ESCAPE '\\'"
            params.append(f"%{escaped.lower()}%")
        query += " ORDER BY priority DESC, schedule_id"

        try:
            rows = db.execute(query, params).fetchall()
        except sqlite3.Error as e:
            logger.error("Error listing schedules for tenant %s: %s", tenant_id, e)
            raise RepositoryError("Failed to list schedules") from e

        return [self._row_to_schedule(dict(row)) for row in rows]

    def update_schedule(self, schedule: PlaylistSchedule) -> bool:
        """
        Update an existing schedule.

        Args:
            schedule: Schedule with updated values (must have schedule_id)

        Returns:
            True if updated, False if not found
        """
        db = self.get_db()
        schedule.updated_at = utc_now()

        try:
            cursor = db.execute(
                """
                UPDATE PlaylistSchedules SET
                    playlist_id = ?,
                    name = ?,
                    start_date = ?,
                    end_date = ?,
                    start_time = ?,
                    end_time = ?,
                    days_of_week = ?,
                    priority = ?,
                    is_active = ?,
                    updated_at = ?
                WHERE schedule_id = ?
                """,
                (
                    schedule.playlist_id,
                    schedule.name,
                    *self._schedule_values(schedule),
                    schedule.updated_at.isoformat(),
                    schedule.schedule_id,
                ),
            )
            db.commit()
        except sqlite3.Error as e:
            logger.error("Error updating schedule %s: %s", schedule.schedule_id, e)
            raise RepositoryError("Failed to update schedule") from e

        if cursor.rowcount > 0:
            logger.info("Updated schedule %s", schedule.schedule_id)
            return True
        return False

    def delete_schedule(self, schedule_id: int) -> bool:
        """
        Delete a schedule.

        Args:
            schedule_id: Schedule ID

        Returns:
            True if deleted, False if not found
        """
        db = self.get_db()

        try:
            cursor = db.execute(
                "DELETE FROM PlaylistSchedules WHERE schedule_id = ?",
                (schedule_id,),
            )
            db.commit()
        except sqlite3.Error as e:
            logger.error("Error deleting schedule %s: %s", schedule_id, e)
            raise RepositoryError("Failed to delete schedule") from e

        if cursor.rowcount > 0:
            logger.info("Deleted schedule %s", schedule_id)
            return True
        return False

    def set_schedule_active(self, schedule_id: int, is_active: bool) -> bool:
        """
        Enable or disable a schedule.

        Args:
            schedule_id: Schedule ID
            is_active: True to enable, False to disable

        Returns:
            True if updated, False if not found
        """
        db = self.get_db()

        try:
            cursor = db.execute(
                """
                UPDATE PlaylistSchedules
                SET is_active = ?, updated_at = ?
                WHERE schedule_id = ?
                """,
                (1 if is_active else 0, utc_now().isoformat(), schedule_id),
            )
            db.commit()
        except sqlite3.Error as e:
            logger.error("Error setting schedule %s active: %s", schedule_id, e)
            raise RepositoryError("Failed to change schedule state") from e

        if cursor.rowcount > 0:
            logger.info("Set schedule %s is_active=%s", schedule_id, is_active)
            return True
        return False

    # =========================================================================
    # Helper Methods
    # =========================================================================

    @staticmethod
    def _schedule_values(schedule: PlaylistSchedule) -> tuple:
        """Interval, priority and state columns in table order."""
        return (
            schedule.start_date.isoformat() if schedule.start_date else None,
            schedule.end_date.isoformat() if schedule.end_date else None,
            schedule.start_time,
            schedule.end_time,
            json.dumps(schedule.days_of_week) if schedule.days_of_week else None,
            schedule.priority,
            1 if schedule.is_active else 0,
        )

    def _row_to_schedule(self, row: dict[str, Any]) -> PlaylistSchedule:
        """Convert database row to PlaylistSchedule object."""
        days_of_week = None
        if row.get("days_of_week"):
            try:
                days_of_week = json.loads(row["days_of_week"])
            except (json.JSONDecodeError, TypeError):
                logger.warning("Ignoring unreadable days_of_week on schedule %s", row.get("schedule_id"))

        created_at = None
        if row.get("created_at"):
            try:
                created_at = datetime.fromisoformat(row["created_at"])
            except (ValueError, TypeError):
                pass

        updated_at = None
        if row.get("updated_at"):
            try:
                updated_at = datetime.fromisoformat(row["updated_at"])
            except (ValueError, TypeError):
                pass

        return PlaylistSchedule(
            schedule_id=row.get("schedule_id"),
            tenant_id=row.get("tenant_id", 0),
            playlist_id=row.get("playlist_id", 0),
            name=row.get("name", ""),
            start_date=row.get("start_date"),
            end_date=row.get("end_date"),
            start_time=row.get("start_time"),
            end_time=row.get("end_time"),
            days_of_week=days_of_week,
            priority=row.get("priority", 1),
            is_active=bool(row.get("is_active", 1)),
            created_at=created_at,
            updated_at=updated_at,
        )
