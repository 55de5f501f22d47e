from touchclean.extensions import db
from touchclean.models.base import PKType, TimestampMixin


class StaffDetail(TimestampMixin, db.Model):
    __tablename__ = "staff_details"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    user_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    employee_id = db.Column(db.String(32), nullable=True, unique=True)
    employment_type = db.Column(db.String(24), nullable=False, default="casual")
    hourly_rate = db.Column(db.Numeric(10, 2), nullable=True)
    total_hours_worked = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total_earnings = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_tasks_completed = db.Column(db.Integer, nullable=False, default=0)
    average_rating = db.Column(db.Numeric(3, 2), nullable=False, default=0)
    rating_count = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    notes = db.Column(db.Text, nullable=True)

    user = db.relationship("User", back_populates="staff_detail")
    payroll = db.relationship("StaffPayroll", back_populates="staff", lazy="dynamic")
