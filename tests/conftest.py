from datetime import date, timedelta

import pytest

from touchclean import create_app
from touchclean.extensions import bcrypt, db
from touchclean.models import AdminDetail, Booking, StaffDetail, User

PASSWORD = "password123"


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def outbox(app):
    return app.extensions.setdefault("mail_outbox", [])


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(role="customer", email=None, full_name=None, **details):
        counter["n"] += 1
        user = User(
            full_name=full_name or f"{role.title()} {counter['n']}",
            email=email or f"{role}{counter['n']}@example.com",
            phone="0400 000 000",
            role=role,
            password_hash=bcrypt.generate_password_hash(PASSWORD).decode("utf-8"),
        )
        if role == "staff" and details.pop("with_detail", True):
            user.staff_detail = StaffDetail(hourly_rate=details.pop("hourly_rate", None))
        if role == "admin":
            permissions = details.pop("permissions", ())
            user.admin_detail = AdminDetail(
                admin_level=details.pop("admin_level", "standard"),
                **{name: True for name in permissions},
            )
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def customer(make_user):
    return make_user("customer", email="customer@example.com", full_name="Casey Customer")


@pytest.fixture
def staff(make_user):
    return make_user("staff", email="sam@example.com", full_name="Sam Staff")


@pytest.fixture
def super_admin(make_user):
    return make_user("admin", email="boss@example.com", full_name="Alex Admin", admin_level="super")


def booking_payload(**overrides):
    payload = {
        "first_name": "Casey",
        "last_name": "Customer",
        "email": "customer@example.com",
        "phone": "0400 000 000",
        "service_address": "12 Harbour St, Sydney NSW",
        "service_type": "residential",
        "property_type": "apartment",
        "preferred_date": (date.today() + timedelta(days=3)).isoformat(),
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_booking(app):
    def _make(status="pending", staff_id=None, customer_id=None, **fields):
        values = {
            "first_name": "Casey",
            "last_name": "Customer",
            "email": "customer@example.com",
            "phone": "0400 000 000",
            "service_address": "12 Harbour St, Sydney NSW",
            "service_type": "residential",
            "selected_services": ["residential"],
            "property_type": "apartment",
            "booking_type": "one_time",
            "preferred_date": date.today() + timedelta(days=3),
        }
        values.update(fields)
        booking = Booking(status=status, staff_id=staff_id, customer_id=customer_id, **values)
        db.session.add(booking)
        db.session.commit()
        return booking

    return _make


def login(client, user, password=PASSWORD):
    response = client.post("/api/v1/auth/login", json={"email": user.email, "password": password})
    assert response.status_code == 200, response.get_json()
    return response
