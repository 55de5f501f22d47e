from flask import current_app

from touchclean.errors import AppError
from touchclean.extensions import db
from touchclean.models import Enquiry
from touchclean.models.base import utcnow
from touchclean.models.enquiry import ENQUIRY_STATUSES
from touchclean.permissions import CAN_MANAGE_CUSTOMERS
from touchclean.services.booking_service import require_permission
from touchclean.services.dispatch import EnquiryReceived, EnquiryReplied, emit
from touchclean.services.validators import clean_choice, clean_email, clean_phone, clean_text


class EnquiryService:
    @staticmethod
    def submit_enquiry(payload):
        payload = payload or {}
        enquiry = Enquiry(
            name=clean_text(payload.get("name"), "Name", max_length=120),
            email=clean_email(payload.get("email")),
            phone=clean_phone(payload.get("phone"), required=False),
            service_interest=clean_text(payload.get("service_interest"), "Service interest", required=False, max_length=120),
            message=clean_text(payload.get("message"), "Message", min_length=10, max_length=2000),
            status="new",
        )
        db.session.add(enquiry)
        db.session.commit()
        current_app.logger.info("Enquiry %s received", enquiry.id)
        emit(
            EnquiryReceived(
                enquiry_id=enquiry.id,
                name=enquiry.name,
                email=enquiry.email,
                message=enquiry.message,
                phone=enquiry.phone,
                service_interest=enquiry.service_interest,
            )
        )
        return enquiry

    @staticmethod
    def get_enquiry(enquiry_id):
        enquiry = db.session.get(Enquiry, enquiry_id)
        if not enquiry:
            raise AppError("Enquiry not found.", 404)
        return enquiry

    @staticmethod
    def list_enquiries(status=None):
        query = Enquiry.query
        if status and status != "all":
            query = query.filter(Enquiry.status == clean_choice(status, ENQUIRY_STATUSES, "status"))
        return query.order_by(Enquiry.created_at.desc(), Enquiry.id.desc()).all()

    @staticmethod
    def update_status(enquiry, status, actor):
        require_permission(actor, CAN_MANAGE_CUSTOMERS)
        enquiry.status = clean_choice(status, ENQUIRY_STATUSES, "status")
        if enquiry.status == "new":
            enquiry.responded_at = None
            enquiry.responded_by = None
        else:
            enquiry.responded_at = utcnow()
            enquiry.responded_by = actor.id
        db.session.commit()
        return enquiry

    @staticmethod
    def update_notes(enquiry, notes, actor):
        require_permission(actor, CAN_MANAGE_CUSTOMERS)
        enquiry.notes = clean_text(notes, "Notes", required=False, max_length=2000)
        db.session.commit()
        return enquiry

    @staticmethod
    def reply(enquiry, message, actor):
        require_permission(actor, CAN_MANAGE_CUSTOMERS)
        reply_message = clean_text(message, "Reply", max_length=5000)
        if enquiry.status == "new":
            enquiry.status = "contacted"
        enquiry.responded_at = utcnow()
        enquiry.responded_by = actor.id
        db.session.commit()
        emit(
            EnquiryReplied(
                enquiry_id=enquiry.id,
                name=enquiry.name,
                email=enquiry.email,
                reply_message=reply_message,
            )
        )
        return enquiry

    @staticmethod
    def delete_enquiry(enquiry, actor):
        require_permission(actor, CAN_MANAGE_CUSTOMERS)
        db.session.delete(enquiry)
        db.session.commit()
