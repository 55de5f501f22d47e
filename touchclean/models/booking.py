from touchclean.extensions import db
from touchclean.models.base import PKType, TimestampMixin

BOOKING_STATUSES = ("pending", "confirmed", "in_progress", "completed", "cancelled")
SERVICE_TYPES = ("residential", "commercial", "deep_clean", "carpet_clean", "window_clean", "end_of_lease")
PROPERTY_TYPES = ("apartment", "house", "office", "retail", "industrial")
BOOKING_TYPES = ("one_time", "weekly", "monthly", "contract")


class Booking(TimestampMixin, db.Model):
    __tablename__ = "bookings"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    customer_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    staff_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(20), nullable=False)
    service_address = db.Column(db.String(500), nullable=False)
    service_type = db.Column(db.String(32), nullable=False)
    selected_services = db.Column(db.JSON, nullable=False, default=list)
    property_type = db.Column(db.String(32), nullable=False)
    booking_type = db.Column(db.String(24), nullable=False, default="one_time")
    preferred_date = db.Column(db.Date, nullable=False, index=True)
    end_date = db.Column(db.Date, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(24), nullable=False, default="pending", index=True)
    task_accepted_at = db.Column(db.DateTime(timezone=True), nullable=True)
    task_started_at = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    estimated_hours = db.Column(db.Numeric(6, 2), nullable=True)
    estimated_cost = db.Column(db.Numeric(12, 2), nullable=True)
    actual_hours = db.Column(db.Numeric(6, 2), nullable=True)
    actual_cost = db.Column(db.Numeric(12, 2), nullable=True)
    staff_hours_worked = db.Column(db.Numeric(6, 2), nullable=True)

    customer = db.relationship("User", back_populates="bookings", foreign_keys=[customer_id])
    staff = db.relationship("User", back_populates="assigned_bookings", foreign_keys=[staff_id])

    __table_args__ = (
        db.Index("ix_bookings_staff_status", "staff_id", "status"),
        db.Index("ix_bookings_customer_status", "customer_id", "status"),
    )

    @property
    def customer_name(self):
        return f"{self.first_name} {self.last_name}".strip()
