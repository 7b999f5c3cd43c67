from __future__ import annotations

from flask import Flask

from ..common.web import admin_required, current_role, json_ok, request_data, staff_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/feedback", methods=["POST"], endpoint="submit_feedback")
    def submit_feedback():
        data = request_data()
        feedback_id = container.feedback_service.submit(
            entry_id=data.get("entry_id"),
            rating=data.get("rating"),
            comments=data.get("comments"),
            customer_name=data.get("customer_name"),
            customer_phone=data.get("customer_phone"),
        )
        return json_ok(201, feedback_id=feedback_id, message="Thank you for your feedback!")

    @app.route("/api/staff/counters/<int:counter_id>/feedback", methods=["GET"], endpoint="staff_counter_feedback")
    @staff_required
    def staff_counter_feedback(counter_id: int):
        items = container.feedback_service.list_for_counter(current_role=current_role(), counter_id=counter_id)
        return json_ok(feedback=[f.to_dict() for f in items])

    @app.route("/api/admin/feedback", methods=["GET"], endpoint="admin_feedback")
    @admin_required
    def admin_feedback():
        items = container.feedback_service.list_recent(current_role=current_role())
        return json_ok(feedback=[f.to_dict() for f in items])
