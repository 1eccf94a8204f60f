from __future__ import annotations

from typing import Optional

from flask import Flask, jsonify, request

from ..common.datetime_utils import format_instant
from ..common.http import csv_response, is_confirmed, json_body, roles_required
from ..common.validators import optional_date
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import ValidationError
from .model import LogCriteria, LogEntry


def _entry_dict(e: LogEntry) -> dict:
    return {
        "id": e.log_id,
        "student_id": e.student_id,
        "student_name": e.student_name,
        "action": e.action,
        "performed_by": e.performed_by,
        "performer_name": e.performer_name,
        "timestamp": format_instant(e.timestamp, e.raw_timestamp),
    }


def _grace() -> Optional[int]:
    raw = request.args.get("grace", "").strip()
    if not raw:
        return None
    try:
        grace = int(raw)
    except ValueError:
        raise ValidationError("grace must be a whole number of minutes") from None
    if grace < 0:
        raise ValidationError("grace must not be negative")
    return grace


def register(app: Flask, container: Container) -> None:
    feed = container.log_feed_service

    @app.route("/api/logs", methods=["GET"], endpoint="logs_feed")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def logs_feed():
        criteria = LogCriteria.from_args(request.args)
        entries = feed.render_feed(criteria)
        return jsonify({"count": len(entries), "logs": [_entry_dict(e) for e in entries]})

    @app.route("/api/logs/export.csv", methods=["GET"], endpoint="logs_export")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def logs_export():
        export = feed.export_current()
        return csv_response(app, export.content, export.filename)

    @app.route("/api/logs/export-compressed.csv", methods=["GET"], endpoint="logs_export_compressed")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def logs_export_compressed():
        export = feed.export_compressed(_grace())
        return csv_response(app, export.content, export.filename)

    @app.route("/api/logs/export-all.csv", methods=["GET"], endpoint="logs_export_all")
    @roles_required(Role.ADMIN)
    def logs_export_all():
        export = feed.export_all()
        return csv_response(app, export.content, export.filename)

    @app.route("/api/logs/<log_id>", methods=["DELETE"], endpoint="logs_delete")
    @roles_required(Role.ADMIN)
    def logs_delete(log_id: str):
        deleted = feed.delete_log(log_id, confirm=is_confirmed(json_body()))
        return jsonify({"deleted": deleted, "id": log_id})

    @app.route("/api/logs/cleanup", methods=["GET"], endpoint="logs_cleanup_preview")
    @roles_required(Role.ADMIN)
    def logs_cleanup_preview():
        preview = feed.bulk_cleanup_preview(optional_date(request.args.get("cutoff"), "cutoff"))
        return jsonify({"cutoff": preview.cutoff.isoformat(), "count": preview.count})

    @app.route("/api/logs/cleanup.csv", methods=["GET"], endpoint="logs_cleanup_export")
    @roles_required(Role.ADMIN)
    def logs_cleanup_export():
        preview = feed.bulk_cleanup_preview(optional_date(request.args.get("cutoff"), "cutoff"))
        return csv_response(app, preview.export.content, preview.export.filename)

    @app.route("/api/logs/cleanup", methods=["POST"], endpoint="logs_cleanup")
    @roles_required(Role.ADMIN)
    def logs_cleanup():
        body = json_body()
        cutoff = optional_date(body.get("cutoff"), "cutoff")
        deleted = feed.bulk_cleanup(cutoff, confirm=is_confirmed(body))
        return jsonify({"cutoff": cutoff.isoformat(), "deleted": deleted})

    @app.route("/api/logs/wipe", methods=["POST"], endpoint="logs_wipe")
    @roles_required(Role.ADMIN)
    def logs_wipe():
        deleted = feed.wipe(confirm=is_confirmed(json_body()))
        return jsonify({"deleted": deleted})

    @app.route("/api/admin/reconcile", methods=["POST"], endpoint="admin_reconcile")
    @roles_required(Role.ADMIN)
    def admin_reconcile():
        service = container.checkio_service
        dry_run = json_body().get("dry_run") is True
        reports = service.find_drift() if dry_run else service.repair_drift()
        return jsonify(
            {
                "repaired": not dry_run,
                "students": [
                    {
                        "id": r.student_id,
                        "name": r.student_name,
                        "checked_in": r.checked_in,
                        "latest_action": r.latest_action,
                    }
                    for r in reports
                ],
            }
        )

    @app.route("/api/admin/task-errors", methods=["GET"], endpoint="admin_task_errors")
    @roles_required(Role.ADMIN)
    def admin_task_errors():
        failures = container.tasks.drain_errors()
        return jsonify({"errors": [{"task": f.description, "error": str(f.error)} for f in failures]})
