from flask import Blueprint, jsonify

from touchclean.extensions import cache
from touchclean.models import Booking, User
from touchclean.models.booking import PROPERTY_TYPES, SERVICE_TYPES

api_public_bp = Blueprint("api_public", __name__)


@api_public_bp.get("/health")
def health():
    return jsonify({"status": "ok"})


@api_public_bp.get("/stats")
@cache.cached(timeout=120)
def stats():
    return jsonify(
        {
            "completed_jobs": Booking.query.filter_by(status="completed").count(),
            "active_staff": User.query.filter_by(role="staff", is_active_user=True).count(),
            "customers": User.query.filter_by(role="customer").count(),
        }
    )


@api_public_bp.get("/options")
def booking_options():
    return jsonify({"service_types": list(SERVICE_TYPES), "property_types": list(PROPERTY_TYPES)})
