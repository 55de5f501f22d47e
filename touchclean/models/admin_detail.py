from touchclean.extensions import db
from touchclean.models.base import PKType, TimestampMixin


class AdminDetail(TimestampMixin, db.Model):
    __tablename__ = "admin_details"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    user_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    admin_level = db.Column(db.String(24), nullable=False, default="standard")
    department = db.Column(db.String(80), nullable=True)

    can_manage_bookings = db.Column(db.Boolean, nullable=False, default=False)
    can_manage_staff = db.Column(db.Boolean, nullable=False, default=False)
    can_manage_customers = db.Column(db.Boolean, nullable=False, default=False)
    can_manage_payments = db.Column(db.Boolean, nullable=False, default=False)
    can_manage_admins = db.Column(db.Boolean, nullable=False, default=False)
    can_view_reports = db.Column(db.Boolean, nullable=False, default=False)
    can_edit_settings = db.Column(db.Boolean, nullable=False, default=False)

    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)
    login_count = db.Column(db.Integer, nullable=False, default=0)

    user = db.relationship("User", back_populates="admin_detail")
