from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user

from touchclean.extensions import limiter
from touchclean.permissions import AdminPermissions
from touchclean.services import AuthService

api_auth_bp = Blueprint("api_auth", __name__)


def _user_json(user):
    data = {"id": user.id, "email": user.email, "full_name": user.full_name, "role": user.role}
    if user.role == "admin":
        data["permissions"] = AdminPermissions.for_user(user).as_dict()
    return data


@api_auth_bp.post("/register")
@limiter.limit("10 per hour")
def api_register():
    payload = request.get_json(silent=True) or {}
    user = AuthService.register_customer(
        full_name=payload.get("full_name", ""),
        email=payload.get("email", ""),
        password=payload.get("password", ""),
        phone=payload.get("phone"),
    )
    login_user(user)
    return jsonify(_user_json(user)), 201


@api_auth_bp.post("/login")
@limiter.limit("20 per minute")
def api_login():
    payload = request.get_json(silent=True) or {}
    user = AuthService.authenticate_user(payload.get("email", ""), payload.get("password", ""))
    login_user(user)
    return jsonify(_user_json(user))


@api_auth_bp.get("/me")
@login_required
def api_me():
    return jsonify(_user_json(current_user))


@api_auth_bp.post("/logout")
@login_required
def api_logout():
    logout_user()
    return jsonify({"ok": True})
