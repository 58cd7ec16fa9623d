"""
App-wide constants for route configuration.

This module provides a single source of truth for route prefixes, tags,
and common response definitions for API routes.
"""

from dataclasses import dataclass
from typing import Any

from app.models.error import ErrorResponse


@dataclass(frozen=True)
class RouteConfig:
    """Configuration for a route group."""

    prefix: str
    tag: str


class Routes:
    """Route configurations for all API endpoints."""

    ADMIN_USERS = RouteConfig(prefix="/admin/users", tag="admin-users")
    HEALTH = RouteConfig(prefix="/health", tag="health")


# Common response definitions for reuse across routers
# Use these when configuring APIRouter or individual endpoints
class CommonResponses:
    """Standard HTTP error response definitions for OpenAPI documentation."""

    UNAUTHORIZED: dict[int | str, dict[str, Any]] = {
        401: {
            "model": ErrorResponse,
            "description": "Not authenticated or invalid credentials",
        }
    }
    FORBIDDEN: dict[int | str, dict[str, Any]] = {
        403: {
            "model": ErrorResponse,
            "description": "User is inactive or lacks admin privileges",
        }
    }
    NOT_FOUND: dict[int | str, dict[str, Any]] = {
        404: {"model": ErrorResponse, "description": "User not found or deleted"}
    }
    CONFLICT: dict[int | str, dict[str, Any]] = {
        409: {
            "model": ErrorResponse,
            "description": "Illegal status transition or duplicate email",
        }
    }
    BAD_REQUEST: dict[int | str, dict[str, Any]] = {
        400: {"model": ErrorResponse, "description": "Invalid request data"}
    }
    STORE_UNAVAILABLE: dict[int | str, dict[str, Any]] = {
        503: {"model": ErrorResponse, "description": "Data store is unavailable"}
    }


# Sortable columns for user search; anything else falls back to created_at.
USER_SORT_FIELDS: frozenset[str] = frozenset(
    {"created_at", "email", "last_name", "status", "role"}
)
USER_SORT_ALIASES: dict[str, str] = {
    "createdAt": "created_at",
    "lastName": "last_name",
}
DEFAULT_USER_SORT_FIELD = "created_at"

# Largest row offset SQL drivers bind (signed 64-bit); pages past it are clamped.
MAX_ROW_OFFSET = 2**63 - 1
