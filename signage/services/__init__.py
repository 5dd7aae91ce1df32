"""
Service Organization
====================

**application/**
  Singleton services managed by ServiceContainer. One instance per application.
  Examples: ScheduleService, ScheduleValidationService
"""
