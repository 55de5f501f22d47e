from touchclean.services.auth_service import AuthService
from touchclean.services.booking_service import BookingService
from touchclean.services.email_service import EmailService
from touchclean.services.enquiry_service import EnquiryService
from touchclean.services.notification_service import NotificationService
from touchclean.services.payroll_service import PayrollService

__all__ = [
    "AuthService",
    "BookingService",
    "EmailService",
    "EnquiryService",
    "NotificationService",
    "PayrollService",
]
