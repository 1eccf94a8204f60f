from __future__ import annotations

from flask import Flask, jsonify, session

from ..common.http import SESSION_ROLE, SESSION_USER, current_role, current_user_id, json_body
from ..container import Container
from ..core.exceptions import AuthenticationError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/login", methods=["POST"], endpoint="login")
    def login():
        body = json_body()
        s_user = container.auth_service.login(str(body.get("pin") or ""))

        session.clear()
        session[SESSION_ROLE] = s_user.role.value
        session[SESSION_USER] = s_user.user_id

        return jsonify({"role": s_user.role.value, "user_id": s_user.user_id})

    @app.route("/api/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"ok": True})

    @app.route("/api/session", methods=["GET"], endpoint="session_info")
    def session_info():
        role = current_role()
        if role is None:
            raise AuthenticationError("Not logged in")
        return jsonify({"role": role.value, "user_id": current_user_id()})
