import re
from collections import namedtuple
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from touchclean.errors import AppError
from touchclean.extensions import db
from touchclean.models import Booking, StaffDetail, StaffPayroll, User
from touchclean.models.payroll import PAYMENT_STATUSES
from touchclean.permissions import CAN_MANAGE_PAYMENTS
from touchclean.services.booking_service import BookingService, require_permission
from touchclean.services.notification_service import NotificationService
from touchclean.services.validators import clean_choice, clean_text, parse_date, parse_decimal, parse_id

# Fixed employer contribution rate; reported on the payslip but not deducted from net.
SUPERANNUATION_RATE = Decimal("0.115")

BOOKING_MARKER = "booking_id:{}"
BOOKING_MARKER_RE = re.compile(r"booking_id:(\d+)\b")

CENT = Decimal("0.01")

PayrollBreakdown = namedtuple("PayrollBreakdown", ["gross", "tax", "superannuation", "net"])


def _cents(value):
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _stored_amounts(calc):
    gross = _cents(calc.gross)
    tax = _cents(calc.tax)
    return {
        "gross_pay": gross,
        "tax_withheld": tax,
        "superannuation": _cents(calc.superannuation),
        "net_pay": gross - tax,
    }


class PayrollService:
    @staticmethod
    def calculate(hours, rate, bonus=0, tax_percent=20, other_deductions=0):
        """Derive pay from hours worked.

        gross = hours * rate + bonus - other_deductions
        tax   = gross * tax_percent / 100
        super = gross * 0.115
        net   = gross - tax

        Superannuation is reported alongside the payslip but deliberately not
        subtracted from net pay. Results are exact; rounding to cents happens
        only when a record is persisted.
        """
        hours = parse_decimal(hours, "Hours worked", default=Decimal("0"), minimum=0)
        rate = parse_decimal(rate, "Hourly rate", default=Decimal("0"), minimum=0)
        bonus = parse_decimal(bonus, "Bonus", default=Decimal("0"), minimum=0)
        other_deductions = parse_decimal(other_deductions, "Deductions", default=Decimal("0"), minimum=0)
        tax_percent = parse_decimal(tax_percent, "Tax deduction", default=Decimal("0"), minimum=0)
        if tax_percent > 100:
            raise AppError("Tax deduction must be between 0 and 100.", 400)

        gross = hours * rate + bonus - other_deductions
        tax = gross * (tax_percent / Decimal("100"))
        superannuation = gross * SUPERANNUATION_RATE
        net = gross - tax
        return PayrollBreakdown(gross=gross, tax=tax, superannuation=superannuation, net=net)

    @staticmethod
    def booking_ids_with_payroll():
        rows = (
            db.session.query(StaffPayroll.booking_id, StaffPayroll.notes)
            .filter(or_(StaffPayroll.booking_id.isnot(None), StaffPayroll.notes.like("%booking_id:%")))
            .all()
        )
        found = set()
        for booking_id, notes in rows:
            if booking_id is not None:
                found.add(int(booking_id))
            # Older records only carry the link inside their notes text.
            for match in BOOKING_MARKER_RE.finditer(notes or ""):
                found.add(int(match.group(1)))
        return found

    @staticmethod
    def has_payroll(booking_id):
        booking_id = int(booking_id)
        if StaffPayroll.query.filter_by(booking_id=booking_id).first() is not None:
            return True
        candidates = db.session.query(StaffPayroll.notes).filter(
            StaffPayroll.notes.like(f"%{BOOKING_MARKER.format(booking_id)}%")
        )
        return any(
            int(match.group(1)) == booking_id
            for (notes,) in candidates
            for match in BOOKING_MARKER_RE.finditer(notes or "")
        )

    @staticmethod
    def completed_bookings():
        bookings = (
            Booking.query.filter(Booking.status == "completed", Booking.staff_id.isnot(None))
            .order_by(Booking.completed_at.desc(), Booking.id.desc())
            .all()
        )
        with_payroll = PayrollService.booking_ids_with_payroll()
        staff_ids = {b.staff_id for b in bookings}
        names = {}
        if staff_ids:
            names = dict(db.session.query(User.id, User.full_name).filter(User.id.in_(staff_ids)).all())
        return [
            {
                "booking": booking,
                "staff_name": names.get(booking.staff_id, "Unknown"),
                "payroll_created": booking.id in with_payroll,
            }
            for booking in bookings
        ]

    @staticmethod
    def _defaults(hourly_rate, tax_percent, detail):
        config = current_app.config
        rate = parse_decimal(hourly_rate, "Hourly rate", minimum=0)
        if rate is None:
            rate = Decimal(str(detail.hourly_rate)) if detail.hourly_rate is not None else None
        if rate is None:
            rate = Decimal(str(config["PAYROLL_DEFAULT_HOURLY_RATE"]))
        tax = parse_decimal(tax_percent, "Tax deduction", minimum=0)
        if tax is None:
            tax = Decimal(str(config["PAYROLL_DEFAULT_TAX_PERCENT"]))
        return rate, tax

    @staticmethod
    def create_from_booking(
        booking_id,
        actor,
        hourly_rate=None,
        bonus=0,
        bonus_reason=None,
        tax_percent=None,
        other_deductions=0,
    ):
        require_permission(actor, CAN_MANAGE_PAYMENTS)
        booking = BookingService.get_booking(booking_id)
        if booking.status != "completed" or booking.staff_id is None:
            raise AppError("Only completed bookings with assigned staff are eligible for payroll.", 409)
        if PayrollService.has_payroll(booking.id):
            raise AppError("Payroll has already been created for this booking.", 409)

        detail = StaffDetail.query.filter_by(user_id=booking.staff_id).first()
        if detail is None:
            raise AppError("Staff details not found for the assigned staff member.", 404)

        rate, tax_percent = PayrollService._defaults(hourly_rate, tax_percent, detail)
        hours = Decimal(str(booking.staff_hours_worked or 0))
        calc = PayrollService.calculate(hours, rate, bonus, tax_percent, other_deductions)
        period = booking.completed_at.date() if booking.completed_at else date.today()

        payroll = StaffPayroll(
            staff_id=detail.id,
            booking_id=booking.id,
            created_by=actor.id,
            pay_period_start=period,
            pay_period_end=period,
            hours_worked=hours,
            hourly_rate=_cents(rate),
            **_stored_amounts(calc),
            bonus=_cents(parse_decimal(bonus, "Bonus", default=Decimal("0"))),
            bonus_reason=clean_text(bonus_reason, "Bonus reason", required=False),
            deductions=_cents(parse_decimal(other_deductions, "Deductions", default=Decimal("0"))),
            payment_status="pending",
            notes=BOOKING_MARKER.format(booking.id),
        )
        # Payroll row, staff totals and booking cost commit together or not at all.
        try:
            db.session.add(payroll)
            detail.total_earnings = Decimal(str(detail.total_earnings or 0)) + payroll.net_pay
            detail.total_hours_worked = Decimal(str(detail.total_hours_worked or 0)) + hours
            detail.total_tasks_completed = (detail.total_tasks_completed or 0) + 1
            booking.actual_cost = _cents(calc.gross)
            NotificationService.push(
                booking.staff_id,
                "Payroll created",
                f"Pay of ${payroll.net_pay} was recorded for booking #{booking.id}.",
            )
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise AppError("Payroll has already been created for this booking.", 409) from exc
        except Exception:
            db.session.rollback()
            raise

        current_app.logger.info(
            "Payroll %s created for booking %s (gross=%s net=%s)",
            payroll.id,
            booking.id,
            payroll.gross_pay,
            payroll.net_pay,
        )
        return payroll

    @staticmethod
    def create_manual(
        staff_user_id,
        actor,
        hours_worked,
        pay_period_start,
        pay_period_end,
        hourly_rate=None,
        bonus=0,
        bonus_reason=None,
        tax_percent=None,
        deductions=0,
        notes=None,
    ):
        require_permission(actor, CAN_MANAGE_PAYMENTS)
        detail = StaffDetail.query.filter_by(user_id=parse_id(staff_user_id, "staff id")).first()
        if detail is None:
            raise AppError("Staff details not found.", 404)
        start = parse_date(pay_period_start, "Pay period start")
        end = parse_date(pay_period_end, "Pay period end")
        if end < start:
            raise AppError("Pay period end cannot be before its start.", 400)

        rate, tax_percent = PayrollService._defaults(hourly_rate, tax_percent, detail)
        hours = parse_decimal(hours_worked, "Hours worked", default=Decimal("0"), minimum=0)
        calc = PayrollService.calculate(hours, rate, bonus, tax_percent, deductions)
        notes = clean_text(notes, "Notes", required=False, max_length=1000)
        if notes and BOOKING_MARKER_RE.search(notes):
            raise AppError("Notes cannot contain a booking reference marker.", 400)

        payroll = StaffPayroll(
            staff_id=detail.id,
            created_by=actor.id,
            pay_period_start=start,
            pay_period_end=end,
            hours_worked=hours,
            hourly_rate=_cents(rate),
            **_stored_amounts(calc),
            bonus=_cents(parse_decimal(bonus, "Bonus", default=Decimal("0"))),
            bonus_reason=clean_text(bonus_reason, "Bonus reason", required=False),
            deductions=_cents(parse_decimal(deductions, "Deductions", default=Decimal("0"))),
            payment_status="pending",
            notes=notes,
        )
        db.session.add(payroll)
        db.session.commit()
        return payroll

    @staticmethod
    def get_payroll(payroll_id):
        payroll = db.session.get(StaffPayroll, payroll_id)
        if payroll is None:
            raise AppError("Payroll record not found.", 404)
        return payroll

    @staticmethod
    def update_payment_status(payroll_id, status, actor, payment_reference=None):
        require_permission(actor, CAN_MANAGE_PAYMENTS)
        payroll = PayrollService.get_payroll(payroll_id)
        status = clean_choice(status, PAYMENT_STATUSES, "payment status")
        payroll.payment_status = status
        payroll.payment_date = date.today() if status == "paid" else None
        if payment_reference is not None:
            payroll.payment_reference = clean_text(payment_reference, "Payment reference", required=False, max_length=64)
        db.session.commit()
        return payroll

    @staticmethod
    def list_payroll(staff_user_id=None, payment_status=None):
        query = StaffPayroll.query.join(StaffDetail, StaffDetail.id == StaffPayroll.staff_id)
        if staff_user_id is not None:
            query = query.filter(StaffDetail.user_id == staff_user_id)
        if payment_status:
            query = query.filter(
                StaffPayroll.payment_status == clean_choice(payment_status, PAYMENT_STATUSES, "payment status")
            )
        return query.order_by(StaffPayroll.pay_period_end.desc(), StaffPayroll.id.desc()).all()

    @staticmethod
    def staff_earnings(staff_user):
        detail = StaffDetail.query.filter_by(user_id=staff_user.id).first()
        if detail is None:
            raise AppError("Staff details not found.", 404)
        records = PayrollService.list_payroll(staff_user_id=staff_user.id)
        paid = [r for r in records if r.payment_status == "paid"]
        return {
            "detail": detail,
            "records": records,
            "total_paid": sum((Decimal(str(r.net_pay)) for r in paid), Decimal("0")),
            "total_pending": sum(
                (Decimal(str(r.net_pay)) for r in records if r.payment_status != "paid"), Decimal("0")
            ),
        }
