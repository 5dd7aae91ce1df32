"""
Schedule Repository
====================

Concrete implementation of the ScheduleRepository protocol using SQLite.
Wraps the ScheduleOperations and PlaylistOperations mixins from the
infrastructure layer.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from signage.domain.schedules import PlaylistSchedule

if TYPE_CHECKING:
    from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler


class ScheduleRepository:
    """
    Concrete implementation of ScheduleRepository protocol.

    Wraps the database handler to provide repository pattern access.
    """

    def __init__(self, backend: "SQLiteDatabaseHandler") -> None:
        """
        Initialize with database backend.

        Args:
            backend: Database handler that implements ScheduleOperations
        """
        self._backend = backend

    # ==================== Conflict detection ====================

    def find_active_schedules(self, tenant_id: int, exclude_id: Optional[int] = None) -> List[PlaylistSchedule]:
        """Active schedules of a tenant, optionally without one schedule."""
        return self._backend.get_active_schedules_for_tenant(tenant_id, exclude_id)

    # ==================== CRUD Operations ====================

    def create(self, schedule: PlaylistSchedule) -> PlaylistSchedule:
        """Create a new schedule."""
        return self._backend.create_schedule(schedule)

    def get_by_id(self, schedule_id: int) -> Optional[PlaylistSchedule]:
        """Get schedule by ID."""
        return self._backend.get_schedule_by_id(schedule_id)

    def list_by_tenant(
        self,
        tenant_id: int,
        *,
        playlist_id: Optional[int] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> List[PlaylistSchedule]:
        """List the schedules of a tenant."""
        return self._backend.get_schedules_for_tenant(
            tenant_id,
            playlist_id=playlist_id,
            is_active=is_active,
            search=search,
        )

    def update(self, schedule: PlaylistSchedule) -> Optional[PlaylistSchedule]:
        """Update an existing schedule."""
        if self._backend.update_schedule(schedule):
            return self._backend.get_schedule_by_id(schedule.schedule_id)
        return None

    def delete(self, schedule_id: int) -> bool:
        """Delete a schedule."""
        return self._backend.delete_schedule(schedule_id)

    def set_active(self, schedule_id: int, is_active: bool) -> bool:
        """Enable or disable a schedule."""
        return self._backend.set_schedule_active(schedule_id, is_active)

    # ==================== Playlists ====================

    def get_playlist_tenant_id(self, playlist_id: int) -> Optional[int]:
        """Tenant owning a playlist, None when it does not exist."""
        return self._backend.get_playlist_tenant_id(playlist_id)
