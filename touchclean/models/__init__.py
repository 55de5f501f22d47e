from touchclean.models.admin_detail import AdminDetail
from touchclean.models.booking import Booking
from touchclean.models.enquiry import Enquiry
from touchclean.models.notification import Notification
from touchclean.models.payroll import StaffPayroll
from touchclean.models.staff_detail import StaffDetail
from touchclean.models.user import User

__all__ = [
    "User",
    "AdminDetail",
    "StaffDetail",
    "Booking",
    "StaffPayroll",
    "Enquiry",
    "Notification",
]
