from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from touchclean.decorators import permission_required
from touchclean.permissions import CAN_MANAGE_PAYMENTS
from touchclean.serializers import booking_to_dict, breakdown_to_dict, payroll_to_dict
from touchclean.services import PayrollService
from touchclean.services.validators import parse_id

api_payroll_bp = Blueprint("api_payroll", __name__)


@api_payroll_bp.get("")
@login_required
@permission_required(CAN_MANAGE_PAYMENTS)
def list_payroll():
    staff_user_id = request.args.get("staff_id")
    records = PayrollService.list_payroll(
        staff_user_id=parse_id(staff_user_id, "staff id") if staff_user_id else None,
        payment_status=request.args.get("payment_status"),
    )
    return jsonify([payroll_to_dict(p) for p in records])


@api_payroll_bp.get("/bookings")
@login_required
@permission_required(CAN_MANAGE_PAYMENTS)
def completed_bookings():
    rows = PayrollService.completed_bookings()
    return jsonify(
        [
            {
                "booking": booking_to_dict(row["booking"]),
                "staff_name": row["staff_name"],
                "payroll_created": row["payroll_created"],
            }
            for row in rows
        ]
    )


@api_payroll_bp.post("/preview")
@login_required
@permission_required(CAN_MANAGE_PAYMENTS)
def preview():
    payload = request.get_json(silent=True) or {}
    calc = PayrollService.calculate(
        payload.get("hours_worked"),
        payload.get("hourly_rate", current_app.config["PAYROLL_DEFAULT_HOURLY_RATE"]),
        bonus=payload.get("bonus"),
        tax_percent=payload.get("tax_percent", current_app.config["PAYROLL_DEFAULT_TAX_PERCENT"]),
        other_deductions=payload.get("other_deductions"),
    )
    return jsonify(breakdown_to_dict(calc))


@api_payroll_bp.post("/bookings/<int:booking_id>")
@login_required
@permission_required(CAN_MANAGE_PAYMENTS)
def create_from_booking(booking_id):
    payload = request.get_json(silent=True) or {}
    payroll = PayrollService.create_from_booking(
        booking_id,
        current_user,
        hourly_rate=payload.get("hourly_rate"),
        bonus=payload.get("bonus"),
        bonus_reason=payload.get("bonus_reason"),
        tax_percent=payload.get("tax_percent"),
        other_deductions=payload.get("other_deductions"),
    )
    return jsonify(payroll_to_dict(payroll)), 201


@api_payroll_bp.post("/manual")
@login_required
@permission_required(CAN_MANAGE_PAYMENTS)
def create_manual():
    payload = request.get_json(silent=True) or {}
    payroll = PayrollService.create_manual(
        payload.get("staff_id"),
        current_user,
        payload.get("hours_worked"),
        payload.get("pay_period_start"),
        payload.get("pay_period_end"),
        hourly_rate=payload.get("hourly_rate"),
        bonus=payload.get("bonus"),
        bonus_reason=payload.get("bonus_reason"),
        tax_percent=payload.get("tax_percent"),
        deductions=payload.get("deductions"),
        notes=payload.get("notes"),
    )
    return jsonify(payroll_to_dict(payroll)), 201


@api_payroll_bp.patch("/<int:payroll_id>/status")
@login_required
@permission_required(CAN_MANAGE_PAYMENTS)
def update_payment_status(payroll_id):
    payload = request.get_json(silent=True) or {}
    payroll = PayrollService.update_payment_status(
        payroll_id,
        payload.get("payment_status"),
        current_user,
        payment_reference=payload.get("payment_reference"),
    )
    return jsonify(payroll_to_dict(payroll))
