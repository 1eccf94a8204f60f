from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_role, current_user_id, json_body, roles_required
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import ValidationError
from .service import ToggleResult


def _student_ids() -> list:
    ids = json_body().get("student_ids")
    if ids is None:
        return []
    if not isinstance(ids, list):
        raise ValidationError("student_ids must be a list")
    return ids


def _toggle_payload(result: ToggleResult) -> dict:
    return {
        "action": result.action.value,
        "student_ids": list(result.student_ids),
        **result.view.to_dict(),
    }


def register(app: Flask, container: Container) -> None:
    service = container.checkio_service

    @app.route("/api/checkio", methods=["GET"], endpoint="checkio_view")
    @roles_required(Role.ADMIN, Role.TEACHER, Role.PARENT)
    def checkio_view():
        view = service.view(role=current_role(), user_id=current_user_id())
        return jsonify(view.to_dict())

    @app.route("/api/checkin", methods=["POST"], endpoint="checkin")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def checkin():
        result = service.check_in(_student_ids(), performed_by=current_user_id(), role=current_role())
        return jsonify(_toggle_payload(result))

    @app.route("/api/checkout", methods=["POST"], endpoint="checkout")
    @roles_required(Role.ADMIN, Role.TEACHER, Role.PARENT)
    def checkout():
        result = service.check_out(_student_ids(), performed_by=current_user_id(), role=current_role())
        return jsonify(_toggle_payload(result))
