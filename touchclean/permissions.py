"""Admin capability flags; `super` and `admin` levels bypass them."""

CAN_MANAGE_BOOKINGS = "can_manage_bookings"
CAN_MANAGE_STAFF = "can_manage_staff"
CAN_MANAGE_CUSTOMERS = "can_manage_customers"
CAN_MANAGE_PAYMENTS = "can_manage_payments"
CAN_MANAGE_ADMINS = "can_manage_admins"
CAN_VIEW_REPORTS = "can_view_reports"
CAN_EDIT_SETTINGS = "can_edit_settings"

ALL_PERMISSIONS = (
    CAN_MANAGE_BOOKINGS,
    CAN_MANAGE_STAFF,
    CAN_MANAGE_CUSTOMERS,
    CAN_MANAGE_PAYMENTS,
    CAN_MANAGE_ADMINS,
    CAN_VIEW_REPORTS,
    CAN_EDIT_SETTINGS,
)

ADMIN_LEVELS = {"standard", "supervisor", "manager", "super", "admin"}
SUPER_ADMIN_LEVELS = {"super", "admin"}


class AdminPermissions:
    def __init__(self, flags=(), admin_level="standard", department=None):
        unknown = set(flags) - set(ALL_PERMISSIONS)
        if unknown:
            raise ValueError(f"Unknown permission flags: {sorted(unknown)}")
        self.flags = frozenset(flags)
        self.admin_level = admin_level or "standard"
        self.department = department

    @classmethod
    def none(cls):
        return cls()

    @classmethod
    def from_detail(cls, detail):
        if detail is None:
            return cls.none()
        flags = [name for name in ALL_PERMISSIONS if getattr(detail, name, False)]
        return cls(flags, admin_level=detail.admin_level, department=detail.department)

    @classmethod
    def for_user(cls, user):
        if user is None or getattr(user, "role", None) != "admin":
            return cls.none()
        return cls.from_detail(user.admin_detail)

    def is_super_admin(self):
        return self.admin_level in SUPER_ADMIN_LEVELS

    def is_manager(self):
        return self.admin_level == "manager"

    def is_supervisor(self):
        return self.admin_level == "supervisor"

    def has(self, permission):
        return self.is_super_admin() or permission in self.flags

    def as_dict(self):
        data = {name: self.has(name) for name in ALL_PERMISSIONS}
        data["admin_level"] = self.admin_level
        data["department"] = self.department
        return data
