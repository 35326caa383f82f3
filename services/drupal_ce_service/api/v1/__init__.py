"""Drupal CE Service API v1 module.

Contains v1 API routes for page, menu and message data.
"""

from services.drupal_ce_service.api.v1.content_routes import router

__all__ = ["router"]
