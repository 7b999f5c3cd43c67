from __future__ import annotations

from datetime import timedelta

from flask import Flask, session

from ..common.web import admin_required, current_role, json_ok, login_required, request_data
from ..container import Container
from ..core.constants import DEFAULT_SESSION_DAYS


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = request_data()
        email = data.get("email", "")
        password = data.get("password", "")
        remember = bool(data.get("remember_me"))

        s_user = container.auth_service.authenticate(email, password)

        session.clear()
        session.permanent = remember
        app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)
        session["user_id"] = s_user.user_id
        session["name"] = s_user.full_name
        session["role"] = s_user.role.value

        app.logger.info("user logged in", extra={"user_id": s_user.user_id})
        return json_ok(user=s_user.to_dict())

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return json_ok(message="Logged out")

    @app.route("/api/auth/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        s_user = container.auth_service.load_session_user(int(session["user_id"]))
        # Roles can change while a session is alive.
        session["role"] = s_user.role.value
        return json_ok(user=s_user.to_dict())

    @app.route("/api/admin/staff", methods=["GET"], endpoint="admin_staff")
    @admin_required
    def admin_staff():
        staff = container.staff_service.list_staff(current_role=current_role())
        return json_ok(staff=[u.to_public_dict() for u in staff])

    @app.route("/api/admin/staff", methods=["POST"], endpoint="admin_create_staff")
    @admin_required
    def admin_create_staff():
        data = request_data()
        user = container.staff_service.create_staff(
            current_role=current_role(),
            email=data.get("email", ""),
            password=data.get("password", ""),
            full_name=data.get("fullName") or data.get("full_name", ""),
            phone_number=data.get("phoneNumber") or data.get("phone_number", ""),
        )
        return json_ok(201, user=user.to_public_dict())

    @app.route("/api/admin/staff/<int:user_id>", methods=["DELETE"], endpoint="admin_delete_staff")
    @admin_required
    def admin_delete_staff(user_id: int):
        container.staff_service.delete_staff(current_role=current_role(), user_id=user_id)
        return json_ok(message="Staff member deleted")
