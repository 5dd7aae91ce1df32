from __future__ import annotations

import functools
import logging
from dataclasses import dataclass

from infrastructure.database.repositories.schedules import ScheduleRepository
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler
from infrastructure.logging.audit import AuditLogger
from signage.config import AppConfig
from signage.services.application.schedule_service import ScheduleService
from signage.services.application.schedule_validation_service import ScheduleValidationService
from signage.utils.time import local_now, local_today

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Holds the application's long-lived services."""

    config: AppConfig
    database: SQLiteDatabaseHandler
    schedule_repo: ScheduleRepository
    audit_logger: AuditLogger
    schedule_validation_service: ScheduleValidationService
    schedule_service: ScheduleService

    @classmethod
    def build(cls, config: AppConfig) -> "ServiceContainer":
        """Construct the service container with all dependencies.

        Args:
            config: Application configuration
        """
        logger.info("Building ServiceContainer...")
        database = SQLiteDatabaseHandler(config.database_path)
        database.create_tables()

        schedule_repo = ScheduleRepository(database)
        audit_logger = AuditLogger(config.audit_log_path, config.log_level)

        validation_service = ScheduleValidationService(
            schedule_repo,
            min_duration=config.schedule_min_duration,
            max_duration=config.schedule_max_duration,
            today=functools.partial(local_today, config.timezone),
        )
        schedule_service = ScheduleService(
            schedule_repo,
            validation_service,
            audit_logger=audit_logger,
            clock=functools.partial(local_now, config.timezone),
            preview_max_days=config.preview_max_days,
        )

        logger.info("ServiceContainer built successfully.")
        return cls(
            config=config,
            database=database,
            schedule_repo=schedule_repo,
            audit_logger=audit_logger,
            schedule_validation_service=validation_service,
            schedule_service=schedule_service,
        )

    def shutdown(self) -> None:
        """Release external resources before process exit."""
        self.audit_logger.flush()
        self.database.close()
        logger.info("ServiceContainer shut down.")
