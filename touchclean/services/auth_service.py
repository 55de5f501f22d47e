import secrets

from sqlalchemy.exc import IntegrityError

from touchclean.errors import AppError
from touchclean.extensions import bcrypt, db
from touchclean.models import AdminDetail, StaffDetail, User
from touchclean.models.base import utcnow
from touchclean.permissions import (
    ADMIN_LEVELS,
    ALL_PERMISSIONS,
    CAN_MANAGE_ADMINS,
    CAN_MANAGE_CUSTOMERS,
    CAN_MANAGE_STAFF,
)
from touchclean.services.booking_service import require_permission
from touchclean.services.dispatch import AccountCreated, emit
from touchclean.services.validators import clean_choice, clean_email, clean_phone, clean_text, parse_decimal

PERMISSION_FOR_ROLE = {
    "customer": CAN_MANAGE_CUSTOMERS,
    "staff": CAN_MANAGE_STAFF,
    "admin": CAN_MANAGE_ADMINS,
}


class AuthService:
    @staticmethod
    def _hash(password):
        return bcrypt.generate_password_hash(password).decode("utf-8")

    @staticmethod
    def _new_user(full_name, email, password, role, phone):
        normalized_email = clean_email(email)
        if User.query.filter_by(email=normalized_email).first():
            raise AppError("Email already registered.", 409)
        if not password or len(password) < 8:
            raise AppError("Password must be at least 8 characters.", 400)
        return User(
            full_name=clean_text(full_name, "Full name", max_length=120),
            email=normalized_email,
            phone=clean_phone(phone, required=False) or "",
            role=role,
            password_hash=AuthService._hash(password),
        )

    @staticmethod
    def _commit_new_user(user):
        try:
            db.session.add(user)
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise AppError("Email already registered.", 409) from exc
        return user

    @staticmethod
    def register_customer(full_name, email, password, phone=None):
        user = AuthService._new_user(full_name, email, password, "customer", phone)
        return AuthService._commit_new_user(user)

    @staticmethod
    def bootstrap_user(role, full_name, email, password, admin_level="super"):
        """Operator-side account creation with no acting admin, used by the CLI."""
        role = clean_choice(role, PERMISSION_FOR_ROLE, "role")
        user = AuthService._new_user(full_name, email, password, role, None)
        if role == "staff":
            user.staff_detail = StaffDetail()
        elif role == "admin":
            user.admin_detail = AdminDetail(admin_level=clean_choice(admin_level, ADMIN_LEVELS, "admin level"))
        return AuthService._commit_new_user(user)

    @staticmethod
    def create_user_with_role(actor, role, full_name, email, phone=None, password=None, **details):
        """Admin-side account creation for customers, staff and other admins."""
        role = clean_choice(role, PERMISSION_FOR_ROLE, "role")
        require_permission(actor, PERMISSION_FOR_ROLE[role])
        temp_password = None
        if not password:
            temp_password = secrets.token_urlsafe(12)
            password = temp_password

        user = AuthService._new_user(full_name, email, password, role, phone)
        if role == "staff":
            user.staff_detail = StaffDetail(
                hourly_rate=parse_decimal(details.get("hourly_rate"), "Hourly rate", minimum=0),
                employment_type=clean_text(
                    details.get("employment_type") or "casual", "Employment type", max_length=24
                ),
                employee_id=clean_text(details.get("employee_id"), "Employee id", required=False, max_length=32),
            )
        elif role == "admin":
            user.admin_detail = AdminDetail()
            AuthService._apply_admin_permissions(
                user.admin_detail,
                details.get("permissions") or {},
                details.get("admin_level"),
                details.get("department"),
            )
        AuthService._commit_new_user(user)

        emit(
            AccountCreated(
                user_id=user.id,
                full_name=user.full_name,
                email=user.email,
                role=user.role,
                temp_password=temp_password,
            )
        )
        return user, temp_password

    @staticmethod
    def _apply_admin_permissions(detail, permissions, admin_level=None, department=None):
        for name, value in permissions.items():
            if name not in ALL_PERMISSIONS:
                raise AppError(f"Unknown permission: {name}.", 400)
            setattr(detail, name, bool(value))
        if admin_level is not None:
            detail.admin_level = clean_choice(admin_level, ADMIN_LEVELS, "admin level")
        if department is not None:
            detail.department = clean_text(department, "Department", required=False, max_length=80)

    @staticmethod
    def update_admin_permissions(actor, admin_user_id, permissions, admin_level=None, department=None):
        require_permission(actor, CAN_MANAGE_ADMINS)
        target = db.session.get(User, admin_user_id)
        if not target or target.role != "admin":
            raise AppError("Admin not found.", 404)
        detail = target.admin_detail or AdminDetail(user_id=target.id)
        if detail.id is None:
            db.session.add(detail)
        AuthService._apply_admin_permissions(detail, permissions or {}, admin_level, department)
        db.session.commit()
        return detail

    @staticmethod
    def update_staff_detail(actor, staff_user_id, payload):
        require_permission(actor, CAN_MANAGE_STAFF)
        target = db.session.get(User, staff_user_id)
        if not target or target.role != "staff":
            raise AppError("Staff member not found.", 404)
        detail = target.staff_detail
        if detail is None:
            detail = StaffDetail(user_id=target.id)
            db.session.add(detail)
        payload = payload or {}
        if "hourly_rate" in payload:
            detail.hourly_rate = parse_decimal(payload.get("hourly_rate"), "Hourly rate", minimum=0)
        if "employment_type" in payload:
            detail.employment_type = clean_text(payload.get("employment_type"), "Employment type", max_length=24)
        if "is_active" in payload:
            detail.is_active = bool(payload.get("is_active"))
            target.is_active_user = detail.is_active
        if "notes" in payload:
            detail.notes = clean_text(payload.get("notes"), "Notes", required=False, max_length=2000)
        db.session.commit()
        return detail

    @staticmethod
    def list_staff(active_only=False):
        query = User.query.filter_by(role="staff")
        if active_only:
            query = query.filter_by(is_active_user=True)
        return query.order_by(User.full_name.asc()).all()

    @staticmethod
    def authenticate_user(email, password):
        user = User.query.filter_by(email=email.strip().lower() if isinstance(email, str) else "").first()
        if not user:
            raise AppError("Invalid credentials.", 401)

        try:
            is_valid = bcrypt.check_password_hash(user.password_hash, password or "")
        except ValueError:
            is_valid = False

        if not is_valid:
            raise AppError("Invalid credentials.", 401)
        if not user.is_active_user:
            raise AppError("User account is inactive.", 403)
        user.last_login = utcnow()
        if user.admin_detail is not None:
            user.admin_detail.last_login_at = user.last_login
            user.admin_detail.login_count = (user.admin_detail.login_count or 0) + 1
        db.session.commit()
        return user

