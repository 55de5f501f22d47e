from flask import Blueprint

from touchclean.extensions import csrf
from touchclean.routes.api.v1.admin import api_admin_bp
from touchclean.routes.api.v1.auth import api_auth_bp
from touchclean.routes.api.v1.bookings import api_booking_bp
from touchclean.routes.api.v1.enquiries import api_enquiry_bp
from touchclean.routes.api.v1.notifications import api_notification_bp
from touchclean.routes.api.v1.payroll import api_payroll_bp
from touchclean.routes.api.v1.public import api_public_bp
from touchclean.routes.api.v1.staff import api_staff_bp

api_v1_bp = Blueprint("api_v1", __name__)
api_v1_bp.register_blueprint(api_auth_bp, url_prefix="/auth")
api_v1_bp.register_blueprint(api_booking_bp, url_prefix="/bookings")
api_v1_bp.register_blueprint(api_staff_bp, url_prefix="/staff")
api_v1_bp.register_blueprint(api_admin_bp, url_prefix="/admin")
api_v1_bp.register_blueprint(api_payroll_bp, url_prefix="/admin/payroll")
api_v1_bp.register_blueprint(api_enquiry_bp, url_prefix="/enquiries")
api_v1_bp.register_blueprint(api_notification_bp, url_prefix="/notifications")
api_v1_bp.register_blueprint(api_public_bp)

csrf.exempt(api_v1_bp)
