from flask_login import UserMixin

from touchclean.extensions import db
from touchclean.models.base import PKType, TimestampMixin

ROLES = ("customer", "staff", "admin")


class User(UserMixin, TimestampMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    full_name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    phone = db.Column(db.String(20), nullable=False, default="")
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(24), nullable=False, default="customer", index=True)
    is_active_user = db.Column(db.Boolean, nullable=False, default=True)
    last_login = db.Column(db.DateTime(timezone=True), nullable=True)

    staff_detail = db.relationship("StaffDetail", back_populates="user", uselist=False, cascade="all, delete-orphan")
    admin_detail = db.relationship("AdminDetail", back_populates="user", uselist=False, cascade="all, delete-orphan")
    bookings = db.relationship(
        "Booking", back_populates="customer", lazy="dynamic", foreign_keys="Booking.customer_id"
    )
    assigned_bookings = db.relationship(
        "Booking", back_populates="staff", lazy="dynamic", foreign_keys="Booking.staff_id"
    )
    notifications = db.relationship("Notification", back_populates="user", lazy="dynamic")

    @property
    def is_active(self):
        return bool(self.is_active_user)
