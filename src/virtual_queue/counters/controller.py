from __future__ import annotations

from flask import Flask

from ..common.web import admin_required, current_role, current_user_id, json_ok, request_data, staff_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/counters", methods=["GET"], endpoint="counters")
    def counters():
        return json_ok(counters=[c.to_dict() for c in container.counter_service.list_active()])

    @app.route("/api/admin/counters", methods=["GET"], endpoint="admin_counters")
    @admin_required
    def admin_counters():
        items = container.counter_service.list_all(current_role=current_role())
        return json_ok(counters=[c.to_dict() for c in items])

    @app.route("/api/admin/counters", methods=["POST"], endpoint="admin_create_counter")
    @admin_required
    def admin_create_counter():
        data = request_data()
        counter = container.counter_service.create(
            current_role=current_role(),
            name=data.get("name", ""),
            counter_number=data.get("counter_number"),
        )
        return json_ok(201, counter=counter.to_dict())

    @app.route("/api/admin/counters/<int:counter_id>", methods=["DELETE"], endpoint="admin_delete_counter")
    @admin_required
    def admin_delete_counter(counter_id: int):
        container.counter_service.delete(current_role=current_role(), counter_id=counter_id)
        return json_ok(message="Counter deleted")

    @app.route("/api/admin/counters/<int:counter_id>/active", methods=["POST"], endpoint="admin_counter_active")
    @admin_required
    def admin_counter_active(counter_id: int):
        data = request_data()
        counter = container.counter_service.set_active(
            current_role=current_role(),
            counter_id=counter_id,
            is_active=bool(data.get("is_active", True)),
        )
        return json_ok(counter=counter.to_dict())

    @app.route("/api/staff/counters/<int:counter_id>/claim", methods=["POST"], endpoint="staff_claim_counter")
    @staff_required
    def staff_claim_counter(counter_id: int):
        counter = container.counter_service.claim(
            current_role=current_role(),
            staff_id=current_user_id(),
            counter_id=counter_id,
        )
        return json_ok(counter=counter.to_dict())

    @app.route("/api/staff/counters/<int:counter_id>/release", methods=["POST"], endpoint="staff_release_counter")
    @staff_required
    def staff_release_counter(counter_id: int):
        container.counter_service.release(
            current_role=current_role(),
            staff_id=current_user_id(),
            counter_id=counter_id,
        )
        return json_ok(message="Counter released")
