import json

from flask import Blueprint, Response, current_app, jsonify, request, stream_with_context
from flask_login import current_user, login_required

from touchclean.decorators import role_required
from touchclean.errors import AppError
from touchclean.realtime import booking_channel
from touchclean.serializers import booking_to_dict, payroll_to_dict, staff_to_dict
from touchclean.services import BookingService, PayrollService

api_staff_bp = Blueprint("api_staff", __name__)


@api_staff_bp.get("/jobs")
@login_required
@role_required("staff")
def job_board():
    board = BookingService.staff_job_board(current_user.id)
    return jsonify({group: [booking_to_dict(b) for b in rows] for group, rows in board.items()})


@api_staff_bp.get("/jobs/<int:booking_id>")
@login_required
@role_required("staff")
def job_detail(booking_id):
    booking = BookingService.get_booking(booking_id)
    if booking.staff_id != current_user.id:
        raise AppError("Booking not found.", 404)
    data = booking_to_dict(booking)
    data["next_status"] = BookingService.next_staff_status(booking.status)
    return jsonify(data)


@api_staff_bp.patch("/jobs/<int:booking_id>/status")
@login_required
@role_required("staff")
def update_job_status(booking_id):
    payload = request.get_json(silent=True) or {}
    booking = BookingService.staff_transition(
        booking_id,
        current_user,
        payload.get("status"),
        hours_worked=payload.get("hours_worked"),
    )
    return jsonify(booking_to_dict(booking))


@api_staff_bp.patch("/jobs/<int:booking_id>/hours")
@login_required
@role_required("staff")
def record_job_hours(booking_id):
    payload = request.get_json(silent=True) or {}
    booking = BookingService.record_hours(booking_id, current_user, payload.get("hours"))
    return jsonify(booking_to_dict(booking))


@api_staff_bp.get("/earnings")
@login_required
@role_required("staff")
def earnings():
    summary = PayrollService.staff_earnings(current_user)
    return jsonify(
        {
            "staff": staff_to_dict(current_user),
            "total_paid": float(summary["total_paid"]),
            "total_pending": float(summary["total_pending"]),
            "payroll": [payroll_to_dict(p) for p in summary["records"]],
        }
    )


@api_staff_bp.get("/jobs/stream")
@login_required
@role_required("staff")
def job_stream():
    """Server-sent events for this staff member's bookings; clients refetch /jobs on each event."""
    subscription = booking_channel.subscribe(current_user.id)
    keepalive = current_app.config["REALTIME_KEEPALIVE_SECONDS"]

    def generate():
        try:
            yield "retry: 5000\n\n"
            while True:
                event = subscription.get(timeout=keepalive)
                if event is None:
                    yield ": keepalive\n\n"
                    continue
                yield f"event: {event['event'].lower()}\ndata: {json.dumps(event)}\n\n"
        finally:
            subscription.close()

    return Response(
        stream_with_context(generate()),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
