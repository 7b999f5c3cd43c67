from __future__ import annotations

import csv
import io
from datetime import date, timedelta

from flask import Flask, request, url_for

from ..common.datetime_utils import parse_iso_date, to_iso
from ..common.web import admin_required, current_role, current_user_id, json_ok, request_data, staff_required
from ..container import Container
from ..core.constants import DEFAULT_REPORT_DAYS
from ..core.exceptions import ValidationError
from .ticket_qr import render_ticket_qr


def register(app: Flask, container: Container) -> None:
    def _parse_date(value: str | None, default: date) -> date:
        if not value:
            return default
        try:
            return parse_iso_date(value)
        except ValueError:
            raise ValidationError("Dates must use the YYYY-MM-DD format")

    def _write_report_csv(*, rows, filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(
            out,
            fieldnames=[
                "token_number",
                "counter_number",
                "counter_name",
                "customer_name",
                "customer_phone",
                "joined_at",
                "called_at",
                "served_at",
                "wait_minutes",
            ],
        )
        writer.writeheader()
        for r in rows:
            wait = ""
            if r.called_at:
                wait = int((r.called_at - r.joined_at).total_seconds() // 60)
            writer.writerow(
                {
                    "token_number": r.token_number,
                    "counter_number": r.counter_number,
                    "counter_name": r.counter_name,
                    "customer_name": r.customer_name or "",
                    "customer_phone": r.customer_phone or "",
                    "joined_at": to_iso(r.joined_at),
                    "called_at": to_iso(r.called_at) or "",
                    "served_at": to_iso(r.served_at) or "",
                    "wait_minutes": wait,
                }
            )

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    # -- customer ---------------------------------------------------------------

    @app.route("/api/queue/join", methods=["POST"], endpoint="join_queue")
    def join_queue():
        data = request_data()
        ticket = container.queue_service.join(
            customer_name=data.get("name", ""),
            customer_phone=data.get("phone", ""),
            user_id=current_user_id(),
        )
        return json_ok(
            201,
            entry=ticket.to_dict(),
            message=f"Your token number is {ticket.entry.token_number}",
        )

    @app.route("/api/queue/entries/<int:entry_id>", methods=["GET"], endpoint="queue_entry")
    def queue_entry(entry_id: int):
        ticket = container.queue_service.get_status(entry_id)
        return json_ok(entry=ticket.to_dict())

    @app.route("/api/queue/entries/<int:entry_id>", methods=["DELETE"], endpoint="leave_queue")
    def leave_queue(entry_id: int):
        container.queue_service.leave(entry_id)
        return json_ok(message="You have successfully left the queue.")

    @app.route("/api/queue/entries/<int:entry_id>/qr.png", methods=["GET"], endpoint="queue_entry_qr")
    def queue_entry_qr(entry_id: int):
        container.queue_service.get_status(entry_id)
        base = app.config.get("PUBLIC_BASE_URL") or request.host_url.rstrip("/")
        status_url = f"{base.rstrip('/')}{url_for('queue_entry', entry_id=entry_id)}"
        return app.response_class(render_ticket_qr(status_url), mimetype="image/png")

    # -- staff -------------------------------------------------------------------

    @app.route("/api/staff/counters/<int:counter_id>/queue", methods=["GET"], endpoint="staff_queue")
    @staff_required
    def staff_queue(counter_id: int):
        role = current_role()
        waiting = container.queue_service.list_waiting(current_role=role, counter_id=counter_id)
        called = container.queue_service.current_called(current_role=role, counter_id=counter_id)
        return json_ok(
            waiting=waiting,
            waiting_count=len(waiting),
            current=called.to_dict() if called else None,
        )

    @app.route("/api/staff/counters/<int:counter_id>/call-next", methods=["POST"], endpoint="staff_call_next")
    @staff_required
    def staff_call_next(counter_id: int):
        entry = container.queue_service.call_next(
            current_role=current_role(),
            staff_id=current_user_id(),
            counter_id=counter_id,
        )
        return json_ok(called=entry.to_dict(), message=f"Token #{entry.token_number} called")

    @app.route("/api/staff/counters/<int:counter_id>/complete", methods=["POST"], endpoint="staff_complete")
    @staff_required
    def staff_complete(counter_id: int):
        entry = container.queue_service.complete(
            current_role=current_role(),
            staff_id=current_user_id(),
            counter_id=counter_id,
        )
        return json_ok(served=entry.to_dict(), message=f"Token #{entry.token_number} has been served")

    @app.route("/api/staff/counters/<int:counter_id>/serve-next", methods=["POST"], endpoint="staff_serve_next")
    @staff_required
    def staff_serve_next(counter_id: int):
        result = container.queue_service.serve_next(
            current_role=current_role(),
            staff_id=current_user_id(),
            counter_id=counter_id,
        )
        return json_ok(
            served=result.served.to_dict() if result.served else None,
            called=result.called.to_dict() if result.called else None,
        )

    @app.route("/api/staff/counters/<int:counter_id>/reorder", methods=["POST"], endpoint="staff_reorder")
    @staff_required
    def staff_reorder(counter_id: int):
        waiting = container.queue_service.reorder(counter_id)
        return json_ok(waiting=[e.to_dict() for e in waiting])

    # -- admin -------------------------------------------------------------------

    @app.route("/api/admin/stats", methods=["GET"], endpoint="admin_stats")
    @admin_required
    def admin_stats():
        stats = container.queue_service.stats(current_role=current_role())
        return json_ok(stats=stats.to_dict())

    @app.route("/api/admin/reports/served.csv", methods=["GET"], endpoint="admin_served_report")
    @admin_required
    def admin_served_report():
        today = date.today()
        start = _parse_date(request.args.get("start"), today - timedelta(days=DEFAULT_REPORT_DAYS - 1))
        end = _parse_date(request.args.get("end"), today)
        counter_s = request.args.get("counter_id")
        counter_id = int(counter_s) if counter_s and counter_s.isdigit() else None

        rows = container.queue_service.served_report(
            current_role=current_role(),
            start_date=start,
            end_date=end,
            counter_id=counter_id,
        )
        return _write_report_csv(rows=rows, filename=f"served_{start:%Y%m%d}_{end:%Y%m%d}.csv")
