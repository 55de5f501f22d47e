from functools import wraps

from flask import abort
from flask_login import current_user

from touchclean.permissions import AdminPermissions


def role_required(*roles):
    def wrapper(func):
        @wraps(func)
        def inner(*args, **kwargs):
            if not current_user.is_authenticated:
                abort(401)
            if current_user.role not in roles:
                abort(403)
            return func(*args, **kwargs)

        return inner

    return wrapper


def permission_required(permission):
    """Admin-only guard checked before the view touches the database."""

    def wrapper(func):
        @wraps(func)
        def inner(*args, **kwargs):
            if not current_user.is_authenticated:
                abort(401)
            if not AdminPermissions.for_user(current_user).has(permission):
                abort(403)
            return func(*args, **kwargs)

        return inner

    return wrapper
