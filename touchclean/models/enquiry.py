from touchclean.extensions import db
from touchclean.models.base import PKType, TimestampMixin

ENQUIRY_STATUSES = ("new", "contacted", "converted", "closed")


class Enquiry(TimestampMixin, db.Model):
    __tablename__ = "cms_enquiries"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(20), nullable=True)
    service_interest = db.Column(db.String(120), nullable=True)
    message = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(24), nullable=False, default="new", index=True)
    notes = db.Column(db.Text, nullable=True)
    responded_at = db.Column(db.DateTime(timezone=True), nullable=True)
    responded_by = db.Column(PKType, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
