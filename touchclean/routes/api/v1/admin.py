from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from touchclean.decorators import permission_required, role_required
from touchclean.permissions import (
    CAN_MANAGE_BOOKINGS,
    CAN_MANAGE_STAFF,
    CAN_VIEW_REPORTS,
    AdminPermissions,
)
from touchclean.serializers import booking_to_dict, staff_to_dict
from touchclean.services import AuthService, BookingService

api_admin_bp = Blueprint("api_admin", __name__)


@api_admin_bp.get("/bookings")
@login_required
@permission_required(CAN_MANAGE_BOOKINGS)
def list_bookings():
    bookings = BookingService.list_bookings(
        status=request.args.get("status"),
        search=request.args.get("q"),
    )
    return jsonify([booking_to_dict(b) for b in bookings])


@api_admin_bp.post("/bookings")
@login_required
@permission_required(CAN_MANAGE_BOOKINGS)
def create_booking():
    booking = BookingService.create_booking(request.get_json(silent=True) or {}, actor=current_user)
    return jsonify(booking_to_dict(booking)), 201


@api_admin_bp.get("/bookings/<int:booking_id>")
@login_required
@permission_required(CAN_MANAGE_BOOKINGS)
def booking_detail(booking_id):
    return jsonify(booking_to_dict(BookingService.get_booking(booking_id)))


@api_admin_bp.patch("/bookings/<int:booking_id>")
@login_required
@permission_required(CAN_MANAGE_BOOKINGS)
def update_booking(booking_id):
    booking = BookingService.get_booking(booking_id)
    booking = BookingService.update_booking(booking, request.get_json(silent=True) or {}, current_user)
    return jsonify(booking_to_dict(booking))


@api_admin_bp.patch("/bookings/<int:booking_id>/status")
@login_required
@permission_required(CAN_MANAGE_BOOKINGS)
def set_booking_status(booking_id):
    payload = request.get_json(silent=True) or {}
    booking = BookingService.get_booking(booking_id)
    booking = BookingService.admin_set_status(booking, payload.get("status"), current_user)
    return jsonify(booking_to_dict(booking))


@api_admin_bp.post("/bookings/<int:booking_id>/assign")
@login_required
@permission_required(CAN_MANAGE_BOOKINGS)
def assign_booking(booking_id):
    payload = request.get_json(silent=True) or {}
    booking = BookingService.get_booking(booking_id)
    booking = BookingService.assign_staff(booking, payload.get("staff_id"), current_user)
    return jsonify(booking_to_dict(booking))


@api_admin_bp.post("/bookings/<int:booking_id>/unassign")
@login_required
@permission_required(CAN_MANAGE_BOOKINGS)
def unassign_booking(booking_id):
    booking = BookingService.get_booking(booking_id)
    booking = BookingService.unassign_staff(booking, current_user)
    return jsonify(booking_to_dict(booking))


@api_admin_bp.delete("/bookings/<int:booking_id>")
@login_required
@permission_required(CAN_MANAGE_BOOKINGS)
def delete_booking(booking_id):
    BookingService.delete_booking(BookingService.get_booking(booking_id), current_user)
    return jsonify({"ok": True})


@api_admin_bp.get("/staff")
@login_required
@role_required("admin")
def list_staff():
    active_only = request.args.get("active") in ("1", "true", "yes")
    return jsonify([staff_to_dict(u) for u in AuthService.list_staff(active_only=active_only)])


@api_admin_bp.patch("/staff/<int:user_id>")
@login_required
@permission_required(CAN_MANAGE_STAFF)
def update_staff(user_id):
    detail = AuthService.update_staff_detail(current_user, user_id, request.get_json(silent=True) or {})
    return jsonify(staff_to_dict(detail.user))


@api_admin_bp.post("/users")
@login_required
@role_required("admin")
def create_user():
    payload = dict(request.get_json(silent=True) or {})
    user, temp_password = AuthService.create_user_with_role(
        current_user,
        payload.pop("role", None),
        payload.pop("full_name", None),
        payload.pop("email", None),
        phone=payload.pop("phone", None),
        password=payload.pop("password", None),
        **payload,
    )
    data = {"id": user.id, "email": user.email, "full_name": user.full_name, "role": user.role}
    if temp_password:
        data["temp_password"] = temp_password
    return jsonify(data), 201


@api_admin_bp.patch("/admins/<int:user_id>/permissions")
@login_required
@role_required("admin")
def update_admin_permissions(user_id):
    payload = request.get_json(silent=True) or {}
    detail = AuthService.update_admin_permissions(
        current_user,
        user_id,
        payload.get("permissions") or {},
        admin_level=payload.get("admin_level"),
        department=payload.get("department"),
    )
    return jsonify(AdminPermissions.from_detail(detail).as_dict())


@api_admin_bp.get("/analytics")
@login_required
@permission_required(CAN_VIEW_REPORTS)
def analytics():
    return jsonify(BookingService.analytics())
