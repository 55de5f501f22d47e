from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from touchclean.decorators import role_required
from touchclean.errors import AppError
from touchclean.serializers import booking_to_dict
from touchclean.services import BookingService

api_booking_bp = Blueprint("api_booking", __name__)


@api_booking_bp.post("")
@login_required
@role_required("customer")
def create_booking():
    payload = request.get_json(silent=True) or {}
    payload.pop("staff_id", None)
    booking = BookingService.create_booking(payload, actor=current_user)
    return jsonify(booking_to_dict(booking)), 201


@api_booking_bp.get("/me")
@login_required
@role_required("customer")
def my_bookings():
    return jsonify([booking_to_dict(b) for b in BookingService.list_for_customer(current_user.id)])


@api_booking_bp.get("/<int:booking_id>")
@login_required
@role_required("customer")
def booking_detail(booking_id):
    booking = BookingService.get_booking(booking_id)
    if booking.customer_id != current_user.id:
        raise AppError("Booking not found.", 404)
    return jsonify(booking_to_dict(booking))
