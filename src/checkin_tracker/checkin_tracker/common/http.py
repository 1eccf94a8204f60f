"""Shared HTTP helpers for the JSON controllers.

Session keys are ``userRole`` and ``userId``; they are set at login and are the
only client state the API keeps.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Optional

from flask import Flask, jsonify, request, session

from ..core.constants import CSV_MIMETYPE
from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    NotFoundError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)

SESSION_ROLE = "userRole"
SESSION_USER = "userId"

STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (StoreError, 502),
)


def current_role() -> Optional[Role]:
    raw = session.get(SESSION_ROLE)
    if not raw:
        return None
    try:
        return Role(raw)
    except ValueError:
        return None


def current_user_id() -> Optional[str]:
    return session.get(SESSION_USER) or None


def roles_required(*roles: Role):
    """Reject anonymous callers with 401 and other roles with 403."""

    allowed = set(roles)

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            role = current_role()
            if role is None:
                raise AuthenticationError("Please log in to continue.")
            if allowed and role not in allowed:
                raise AuthorizationError("You do not have permission to do that.")
            return view(*args, **kwargs)

        return wrapper

    return decorator


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def is_confirmed(body: Optional[dict] = None) -> bool:
    """``confirm`` as JSON ``true`` or as a truthy query value (for DELETE)."""

    if (body or {}).get("confirm") is True:
        return True
    return request.args.get("confirm", "").strip().lower() in {"1", "true", "yes"}


def csv_response(app: Flask, content: str, filename: str):
    return app.response_class(
        content.encode("utf-8"),
        content_type=CSV_MIMETYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def status_for(error: BaseException) -> int:
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 500


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        status = status_for(e)
        if status >= 500:
            logger.error("%s on %s %s: %s", type(e).__name__, request.method, request.path, e)
        return jsonify({"error": str(e)}), status

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        # Let Flask render its own HTTP errors (404 routes, 405 methods ...).
        code: Any = getattr(e, "code", None)
        if isinstance(code, int) and code < 500:
            return jsonify({"error": getattr(e, "description", str(e))}), code
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        message = str(e) if app.config.get("DEBUG") else "Internal server error"
        return jsonify({"error": message}), 500
