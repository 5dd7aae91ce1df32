"""
Schedule Repository Protocol
=============================

Defines the interface for playlist schedule persistence.
Every query is scoped to a tenant; implementations can use SQLite,
PostgreSQL, or other storage.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol

from signage.domain.schedules.schedule_entity import PlaylistSchedule


class ScheduleRepository(Protocol):
    """Protocol for playlist schedule persistence operations."""

    @abstractmethod
    def find_active_schedules(self, tenant_id: int, exclude_id: int | None = None) -> list[PlaylistSchedule]:
        """
        Get the active schedules of a tenant.

        Args:
            tenant_id: Tenant whose schedules are returned
            exclude_id: Schedule ID to leave out (the one being updated)

        Returns:
            Active schedules, ordered by schedule_id
        """
        ...

    @abstractmethod
    def create(self, schedule: PlaylistSchedule) -> PlaylistSchedule:
        """
        Create a new schedule.

        Args:
            schedule: Schedule to create (schedule_id should be None)

        Returns:
            Created schedule with assigned schedule_id
        """
        ...

    @abstractmethod
    def get_by_id(self, schedule_id: int) -> PlaylistSchedule | None:
        """
        Get schedule by ID.

        Args:
            schedule_id: Schedule ID

        Returns:
            Schedule if found, None otherwise
        """
        ...

    @abstractmethod
    def list_by_tenant(
        self,
        tenant_id: int,
        *,
        playlist_id: int | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> list[PlaylistSchedule]:
        """
        List the schedules of a tenant.

        Args:
            tenant_id: Tenant ID
            playlist_id: Only schedules of this playlist
            is_active: Only active (True) or inactive (False) schedules
            search: Case-insensitive substring of the schedule name

        Returns:
            Matching schedules, highest priority first
        """
        ...

    @abstractmethod
    def update(self, schedule: PlaylistSchedule) -> PlaylistSchedule | None:
        """
        Update an existing schedule.

        Args:
            schedule: Schedule with updated values (must have schedule_id)

        Returns:
            Updated schedule if found, None otherwise
        """
        ...

    @abstractmethod
    def delete(self, schedule_id: int) -> bool:
        """
        Delete a schedule.

        Args:
            schedule_id: Schedule ID to delete

        Returns:
            True if deleted, False if not found
        """
        ...

    @abstractmethod
    def set_active(self, schedule_id: int, is_active: bool) -> bool:
        """
        Enable or disable a schedule.

        Args:
            schedule_id: Schedule ID
            is_active: New state

        Returns:
            True if updated, False if not found
        """
        ...

    @abstractmethod
    def get_playlist_tenant_id(self, playlist_id: int) -> int | None:
        """
        Get the tenant owning a playlist.

        Args:
            playlist_id: Playlist ID

        Returns:
            Owning tenant ID, or None when the playlist does not exist
        """
        ...
