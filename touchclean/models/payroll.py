from touchclean.extensions import db
from touchclean.models.base import PKType, TimestampMixin

PAYMENT_STATUSES = ("pending", "processing", "paid")


class StaffPayroll(TimestampMixin, db.Model):
    __tablename__ = "staff_payroll"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    staff_id = db.Column(PKType, db.ForeignKey("staff_details.id", ondelete="CASCADE"), nullable=False, index=True)
    booking_id = db.Column(
        PKType, db.ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True, unique=True, index=True
    )
    created_by = db.Column(PKType, db.ForeignKey("users.id"), nullable=False)

    pay_period_start = db.Column(db.Date, nullable=False)
    pay_period_end = db.Column(db.Date, nullable=False)
    hours_worked = db.Column(db.Numeric(8, 2), nullable=False, default=0)
    hourly_rate = db.Column(db.Numeric(10, 2), nullable=False)
    gross_pay = db.Column(db.Numeric(12, 2), nullable=False)
    tax_withheld = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    superannuation = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    net_pay = db.Column(db.Numeric(12, 2), nullable=False)
    bonus = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    bonus_reason = db.Column(db.String(255), nullable=True)
    deductions = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    payment_status = db.Column(db.String(24), nullable=False, default="pending", index=True)
    payment_date = db.Column(db.Date, nullable=True)
    payment_reference = db.Column(db.String(64), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    staff = db.relationship("StaffDetail", back_populates="payroll")
    booking = db.relationship("Booking")
