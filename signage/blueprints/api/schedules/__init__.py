"""
Schedules API Module
====================

Playlist schedule endpoints, mounted under /api/v1/schedules:
- routes.py: CRUD, toggle, duplicate, bulk, preview, conflict check,
  override and active-schedule resolution
"""

from flask import Blueprint

from signage.utils.http import error_response

# Create blueprint here to avoid circular imports
schedules_api = Blueprint("schedules_api", __name__)


@schedules_api.errorhandler(404)
def not_found(error):
    """Handle 404 errors"""
    return error_response("Resource not found", 404)


@schedules_api.errorhandler(405)
def method_not_allowed(error):
    return error_response("Method not allowed", 405)


# Import submodules to register routes (must be after blueprint creation)
from . import routes  # noqa: E402,F401

__all__ = ["schedules_api"]
