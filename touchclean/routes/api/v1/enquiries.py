from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from touchclean.decorators import permission_required
from touchclean.extensions import limiter
from touchclean.permissions import CAN_MANAGE_CUSTOMERS
from touchclean.serializers import enquiry_to_dict
from touchclean.services import EnquiryService

api_enquiry_bp = Blueprint("api_enquiry", __name__)


@api_enquiry_bp.post("")
@limiter.limit("5 per minute")
def submit_enquiry():
    enquiry = EnquiryService.submit_enquiry(request.get_json(silent=True) or {})
    return jsonify({"id": enquiry.id, "status": enquiry.status}), 201


@api_enquiry_bp.get("")
@login_required
@permission_required(CAN_MANAGE_CUSTOMERS)
def list_enquiries():
    return jsonify([enquiry_to_dict(e) for e in EnquiryService.list_enquiries(request.args.get("status"))])


@api_enquiry_bp.patch("/<int:enquiry_id>/status")
@login_required
@permission_required(CAN_MANAGE_CUSTOMERS)
def update_status(enquiry_id):
    payload = request.get_json(silent=True) or {}
    enquiry = EnquiryService.get_enquiry(enquiry_id)
    return jsonify(enquiry_to_dict(EnquiryService.update_status(enquiry, payload.get("status"), current_user)))


@api_enquiry_bp.patch("/<int:enquiry_id>/notes")
@login_required
@permission_required(CAN_MANAGE_CUSTOMERS)
def update_notes(enquiry_id):
    payload = request.get_json(silent=True) or {}
    enquiry = EnquiryService.get_enquiry(enquiry_id)
    return jsonify(enquiry_to_dict(EnquiryService.update_notes(enquiry, payload.get("notes"), current_user)))


@api_enquiry_bp.post("/<int:enquiry_id>/reply")
@login_required
@permission_required(CAN_MANAGE_CUSTOMERS)
def reply(enquiry_id):
    payload = request.get_json(silent=True) or {}
    enquiry = EnquiryService.get_enquiry(enquiry_id)
    return jsonify(enquiry_to_dict(EnquiryService.reply(enquiry, payload.get("message"), current_user)))


@api_enquiry_bp.delete("/<int:enquiry_id>")
@login_required
@permission_required(CAN_MANAGE_CUSTOMERS)
def delete_enquiry(enquiry_id):
    EnquiryService.delete_enquiry(EnquiryService.get_enquiry(enquiry_id), current_user)
    return jsonify({"ok": True})
