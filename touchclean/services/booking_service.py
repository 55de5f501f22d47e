from decimal import Decimal

from flask import current_app
from sqlalchemy import func, or_

from touchclean.errors import AppError
from touchclean.extensions import db
from touchclean.models import Booking, Enquiry, StaffDetail, User
from touchclean.models.base import utcnow
from touchclean.models.booking import BOOKING_STATUSES, BOOKING_TYPES, PROPERTY_TYPES, SERVICE_TYPES
from touchclean.permissions import CAN_MANAGE_BOOKINGS, AdminPermissions
from touchclean.realtime import booking_channel
from touchclean.services.dispatch import BookingAssigned, BookingCreated, emit
from touchclean.services.notification_service import NotificationService
from touchclean.services.validators import (
    clean_choice,
    clean_email,
    clean_phone,
    clean_text,
    parse_date,
    parse_decimal,
    parse_id,
)

# Staff may only move their own bookings one step forward.
STAFF_TRANSITIONS = {
    "pending": ("confirmed", "task_accepted_at"),
    "confirmed": ("in_progress", "task_started_at"),
    "in_progress": ("completed", "completed_at"),
}

TERMINAL_STATUSES = {"completed", "cancelled"}

EDITABLE_DECIMALS = ("estimated_hours", "estimated_cost", "actual_hours", "actual_cost", "staff_hours_worked")


def require_permission(actor, permission):
    if not AdminPermissions.for_user(actor).has(permission):
        raise AppError("You do not have permission to perform this action.", 403)


class BookingService:
    @staticmethod
    def _status_label(status):
        return (status or "").replace("_", " ").title()

    @staticmethod
    def get_booking(booking_id):
        booking = db.session.get(Booking, booking_id)
        if not booking:
            raise AppError("Booking not found.", 404)
        return booking

    @staticmethod
    def _get_staff_user(staff_id):
        if staff_id in (None, ""):
            raise AppError("Staff member is required.", 400)
        staff = db.session.get(User, parse_id(staff_id, "staff id"))
        if not staff or staff.role != "staff" or not staff.is_active_user:
            raise AppError("Staff member not found.", 404)
        return staff

    @staticmethod
    def _clean_booking_payload(payload):
        service_type = clean_choice(payload.get("service_type"), SERVICE_TYPES, "service type")
        selected = payload.get("selected_services") or [service_type]
        if isinstance(selected, str):
            selected = [item.strip() for item in selected.split(",") if item.strip()]
        elif not isinstance(selected, (list, tuple)):
            raise AppError("Selected services must be a list.", 400)
        selected_services = [clean_choice(item, SERVICE_TYPES, "service") for item in selected]

        preferred_date = parse_date(payload.get("preferred_date"), "Preferred date")
        end_date = parse_date(payload.get("end_date"), "End date", required=False)
        if end_date and end_date < preferred_date:
            raise AppError("End date cannot be before the preferred date.", 400)

        return {
            "first_name": clean_text(payload.get("first_name"), "First name", max_length=100),
            "last_name": clean_text(payload.get("last_name"), "Last name", max_length=100),
            "email": clean_email(payload.get("email")),
            "phone": clean_phone(payload.get("phone")),
            "service_address": clean_text(payload.get("service_address"), "Address", min_length=5, max_length=500),
            "service_type": service_type,
            "selected_services": list(dict.fromkeys(selected_services)),
            "property_type": clean_choice(payload.get("property_type"), PROPERTY_TYPES, "property type"),
            "booking_type": clean_choice(payload.get("booking_type"), BOOKING_TYPES, "booking type", default="one_time"),
            "preferred_date": preferred_date,
            "end_date": end_date,
            "notes": clean_text(payload.get("notes"), "Notes", required=False, max_length=1000),
            "estimated_hours": parse_decimal(payload.get("estimated_hours"), "Estimated hours", minimum=0),
            "estimated_cost": parse_decimal(payload.get("estimated_cost"), "Estimated cost", minimum=0),
        }

    @staticmethod
    def create_booking(payload, actor=None):
        """Customers book for themselves; admins may book on behalf of anyone and pre-assign staff."""
        payload = payload or {}
        fields = BookingService._clean_booking_payload(payload)
        staff = None
        customer_id = None

        if actor is not None and actor.role == "admin":
            require_permission(actor, CAN_MANAGE_BOOKINGS)
            if payload.get("customer_id"):
                customer_id = parse_id(payload.get("customer_id"), "customer id")
                customer = db.session.get(User, customer_id)
                if not customer or customer.role != "customer":
                    raise AppError("Customer not found.", 404)
            if payload.get("staff_id"):
                staff = BookingService._get_staff_user(payload.get("staff_id"))
        elif actor is not None:
            if actor.role != "customer":
                raise AppError("Only customers can create bookings.", 403)
            customer_id = actor.id

        booking = Booking(
            customer_id=customer_id,
            staff_id=staff.id if staff else None,
            status="confirmed" if staff else "pending",
            **fields,
        )
        try:
            db.session.add(booking)
            db.session.flush()
            if staff:
                NotificationService.push(
                    staff.id,
                    "New job assigned",
                    f"You have been assigned booking #{booking.id} on {booking.preferred_date.isoformat()}.",
                )
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        current_app.logger.info("Booking %s created (status=%s)", booking.id, booking.status)
        booking_channel.publish("INSERT", booking.id, booking.staff_id)
        emit(
            BookingCreated(
                booking_id=booking.id,
                email=booking.email,
                first_name=booking.first_name,
                last_name=booking.last_name,
                phone=booking.phone,
                service_type=BookingService._status_label(booking.service_type),
                property_type=BookingService._status_label(booking.property_type),
                booking_type=BookingService._status_label(booking.booking_type),
                preferred_date=booking.preferred_date.isoformat(),
                service_address=booking.service_address,
                selected_services=[BookingService._status_label(s) for s in booking.selected_services],
                notes=booking.notes,
            )
        )
        if staff:
            BookingService._emit_assignment(booking, staff, previous_staff_id=None)
        return booking

    @staticmethod
    def list_bookings(status=None, search=None):
        query = Booking.query
        if status and status != "all":
            query = query.filter(Booking.status == clean_choice(status, BOOKING_STATUSES, "status"))
        if search:
            term = f"%{search.strip().lower()}%"
            query = query.filter(
                or_(
                    func.lower(Booking.first_name).like(term),
                    func.lower(Booking.last_name).like(term),
                    func.lower(Booking.email).like(term),
                    func.lower(Booking.service_address).like(term),
                )
            )
        return query.order_by(Booking.created_at.desc(), Booking.id.desc()).all()

    @staticmethod
    def list_for_customer(customer_id):
        return (
            Booking.query.filter_by(customer_id=customer_id)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .all()
        )

    @staticmethod
    def list_for_staff(staff_id):
        return Booking.query.filter_by(staff_id=staff_id).order_by(Booking.preferred_date.asc(), Booking.id.asc()).all()

    @staticmethod
    def staff_job_board(staff_id):
        bookings = BookingService.list_for_staff(staff_id)
        return {
            "new": [b for b in bookings if b.status == "pending"],
            "accepted": [b for b in bookings if b.status == "confirmed"],
            "in_progress": [b for b in bookings if b.status == "in_progress"],
            "completed": [b for b in bookings if b.status == "completed"],
        }

    @staticmethod
    def update_booking(booking, payload, actor):
        require_permission(actor, CAN_MANAGE_BOOKINGS)
        payload = payload or {}
        updates = {}
        for name in EDITABLE_DECIMALS:
            if name in payload:
                updates[name] = parse_decimal(payload.get(name), name.replace("_", " ").capitalize(), minimum=0)
        if "notes" in payload:
            updates["notes"] = clean_text(payload.get("notes"), "Notes", required=False, max_length=1000)
        if "service_address" in payload:
            updates["service_address"] = clean_text(
                payload.get("service_address"), "Address", min_length=5, max_length=500
            )
        if "phone" in payload:
            updates["phone"] = clean_phone(payload.get("phone"))
        if "preferred_date" in payload:
            updates["preferred_date"] = parse_date(payload.get("preferred_date"), "Preferred date")
        if "end_date" in payload:
            updates["end_date"] = parse_date(payload.get("end_date"), "End date", required=False)
        end_date = updates.get("end_date", booking.end_date)
        preferred_date = updates.get("preferred_date", booking.preferred_date)
        if end_date and end_date < preferred_date:
            raise AppError("End date cannot be before the preferred date.", 400)

        for name, value in updates.items():
            setattr(booking, name, value)
        db.session.commit()
        booking_channel.publish("UPDATE", booking.id, booking.staff_id)
        return booking

    @staticmethod
    def delete_booking(booking, actor):
        require_permission(actor, CAN_MANAGE_BOOKINGS)
        booking_id, staff_id = booking.id, booking.staff_id
        db.session.delete(booking)
        db.session.commit()
        current_app.logger.info("Booking %s deleted by user %s", booking_id, actor.id)
        booking_channel.publish("DELETE", booking_id, staff_id)

    @staticmethod
    def admin_set_status(booking, new_status, actor):
        require_permission(actor, CAN_MANAGE_BOOKINGS)
        new_status = clean_choice(new_status, BOOKING_STATUSES, "status")
        booking.status = new_status
        if new_status == "completed" and booking.completed_at is None:
            booking.completed_at = utcnow()
        db.session.commit()
        booking_channel.publish("UPDATE", booking.id, booking.staff_id)
        return booking

    @staticmethod
    def next_staff_status(current):
        step = STAFF_TRANSITIONS.get(current)
        return step[0] if step else None

    @staticmethod
    def staff_transition(booking_id, staff_user, new_status, hours_worked=None):
        booking = BookingService.get_booking(booking_id)
        if staff_user is None or booking.staff_id != staff_user.id:
            raise AppError("Not authorized for this booking.", 403)

        current = booking.status
        new_status = new_status.strip().lower() if isinstance(new_status, str) else ""
        step = STAFF_TRANSITIONS.get(current)
        if step is None or step[0] != new_status:
            raise AppError(f"Invalid status transition from {current} to {new_status}.", 409)

        updates = {"status": new_status, step[1]: utcnow()}
        if hours_worked not in (None, ""):
            if new_status != "completed":
                raise AppError("Hours can only be recorded when completing a job.", 400)
            updates["staff_hours_worked"] = BookingService._positive_hours(hours_worked)

        # Conditional write so a concurrent change leaves the row untouched.
        matched = (
            Booking.query.filter_by(id=booking.id, staff_id=staff_user.id, status=current)
            .update(updates, synchronize_session="fetch")
        )
        if matched == 0:
            db.session.rollback()
            raise AppError("Booking was changed by someone else. Refresh and retry.", 409)
        db.session.commit()

        current_app.logger.info("Booking %s moved %s -> %s by staff %s", booking.id, current, new_status, staff_user.id)
        booking_channel.publish("UPDATE", booking.id, staff_user.id)
        return db.session.get(Booking, booking.id)

    @staticmethod
    def _positive_hours(value):
        hours = parse_decimal(value, "Hours worked")
        if hours is None or hours <= 0:
            raise AppError("Please enter valid hours.", 400)
        return hours

    @staticmethod
    def record_hours(booking_id, staff_user, hours):
        booking = BookingService.get_booking(booking_id)
        if staff_user is None or booking.staff_id != staff_user.id:
            raise AppError("Not authorized for this booking.", 403)
        if booking.status not in {"in_progress", "completed"}:
            raise AppError("Hours can only be recorded once the job has started.", 409)
        booking.staff_hours_worked = BookingService._positive_hours(hours)
        db.session.commit()
        booking_channel.publish("UPDATE", booking.id, booking.staff_id)
        return booking

    @staticmethod
    def assign_staff(booking, staff_id, actor):
        require_permission(actor, CAN_MANAGE_BOOKINGS)
        staff = BookingService._get_staff_user(staff_id)
        previous_staff_id = booking.staff_id
        if previous_staff_id == staff.id:
            # Same staff: no notices, but an assigned booking never stays pending.
            if booking.status == "pending":
                booking.status = "confirmed"
                db.session.commit()
                booking_channel.publish("UPDATE", booking.id, staff.id)
            return booking

        booking.staff_id = staff.id
        if booking.status == "pending":
            booking.status = "confirmed"
        try:
            NotificationService.push(
                staff.id,
                "New job assigned",
                f"You have been assigned booking #{booking.id} on {booking.preferred_date.isoformat()}.",
            )
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        current_app.logger.info(
            "Booking %s assigned to staff %s (previous=%s)", booking.id, staff.id, previous_staff_id
        )
        booking_channel.publish("UPDATE", booking.id, staff.id)
        if previous_staff_id is not None:
            booking_channel.publish("UPDATE", booking.id, previous_staff_id)
        BookingService._emit_assignment(booking, staff, previous_staff_id)
        return booking

    @staticmethod
    def _emit_assignment(booking, staff, previous_staff_id):
        emit(
            BookingAssigned(
                booking_id=booking.id,
                customer_email=booking.email,
                customer_name=booking.customer_name,
                staff_id=staff.id,
                staff_name=staff.full_name,
                service_type=BookingService._status_label(booking.service_type),
                preferred_date=booking.preferred_date.isoformat(),
                service_address=booking.service_address,
                previous_staff_id=previous_staff_id,
            )
        )

    @staticmethod
    def unassign_staff(booking, actor):
        """Clears the assignment and forces the booking back to pending, whatever its status."""
        require_permission(actor, CAN_MANAGE_BOOKINGS)
        previous_staff_id = booking.staff_id
        previous_status = booking.status
        if previous_status in TERMINAL_STATUSES:
            current_app.logger.warning(
                "Booking %s unassigned while %s; terminal status reset to pending", booking.id, previous_status
            )
        booking.staff_id = None
        booking.status = "pending"
        db.session.commit()
        if previous_staff_id is not None:
            booking_channel.publish("UPDATE", booking.id, previous_staff_id)
        return booking

    @staticmethod
    def analytics():
        status_counts = dict(
            db.session.query(Booking.status, func.count(Booking.id)).group_by(Booking.status).all()
        )
        service_counts = dict(
            db.session.query(Booking.service_type, func.count(Booking.id)).group_by(Booking.service_type).all()
        )
        revenue = (
            db.session.query(func.coalesce(func.sum(func.coalesce(Booking.actual_cost, Booking.estimated_cost)), 0))
            .filter(Booking.status == "completed")
            .scalar()
        )
        top_staff = (
            db.session.query(User.id, User.full_name, StaffDetail.total_tasks_completed, StaffDetail.total_earnings,
                             StaffDetail.total_hours_worked, StaffDetail.average_rating)
            .join(StaffDetail, StaffDetail.user_id == User.id)
            .order_by(StaffDetail.total_tasks_completed.desc())
            .limit(10)
            .all()
        )
        return {
            "total_bookings": sum(status_counts.values()),
            "by_status": {status: int(status_counts.get(status, 0)) for status in BOOKING_STATUSES},
            "by_service": {key: int(value) for key, value in service_counts.items()},
            "total_revenue": float(Decimal(str(revenue or 0))),
            "total_customers": User.query.filter_by(role="customer").count(),
            "total_enquiries": Enquiry.query.count(),
            "staff_performance": [
                {
                    "staff_id": row[0],
                    "name": row[1],
                    "completed_jobs": int(row[2] or 0),
                    "total_earnings": float(row[3] or 0),
                    "hours_worked": float(row[4] or 0),
                    "average_rating": float(row[5] or 0),
                }
                for row in top_staff
            ],
        }
