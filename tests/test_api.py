from decimal import Decimal

from conftest import booking_payload, login
from touchclean.extensions import db
from touchclean.models import Booking
from touchclean.permissions import CAN_MANAGE_PAYMENTS


def test_register_then_me(client):
    response = client.post(
        "/api/v1/auth/register",
        json={"full_name": "Drew New", "email": "Drew@Example.com", "password": "longenough"},
    )
    assert response.status_code == 201
    me = client.get("/api/v1/auth/me").get_json()
    assert me["email"] == "drew@example.com"
    assert me["role"] == "customer"


def test_login_with_wrong_password(client, customer):
    response = client.post("/api/v1/auth/login", json={"email": customer.email, "password": "nope"})
    assert response.status_code == 401
    assert response.get_json() == {"error": "Invalid credentials."}


def test_anonymous_requests_are_unauthorized(client):
    assert client.get("/api/v1/staff/jobs").status_code == 401
    assert client.get("/api/v1/admin/bookings").status_code == 401


def test_unknown_api_route_returns_json_404(client):
    response = client.get("/api/v1/nothing-here")
    assert response.status_code == 404
    assert response.get_json() == {"error": "Not found"}


def test_customer_books_and_sees_only_own_bookings(client, customer, make_booking, staff, outbox):
    make_booking(first_name="Someone", customer_id=None)
    login(client, customer)

    response = client.post("/api/v1/bookings", json=booking_payload(staff_id=staff.id))
    assert response.status_code == 201
    created = response.get_json()
    assert created["status"] == "pending"
    assert created["staff_id"] is None
    assert outbox[-1]["kind"] == "booking"

    mine = client.get("/api/v1/bookings/me").get_json()
    assert [b["id"] for b in mine] == [created["id"]]


def test_customer_cannot_reach_staff_or_admin_views(client, customer):
    login(client, customer)
    assert client.get("/api/v1/staff/jobs").status_code == 403
    assert client.get("/api/v1/staff/jobs/stream").status_code == 403
    assert client.get("/api/v1/admin/analytics").status_code == 403


def test_staff_job_flow(client, staff, make_booking):
    booking = make_booking(status="confirmed", staff_id=staff.id)
    login(client, staff)

    board = client.get("/api/v1/staff/jobs").get_json()
    assert [b["id"] for b in board["accepted"]] == [booking.id]

    skipped = client.patch(f"/api/v1/staff/jobs/{booking.id}/status", json={"status": "completed"})
    assert skipped.status_code == 409
    assert "error" in skipped.get_json()

    started = client.patch(f"/api/v1/staff/jobs/{booking.id}/status", json={"status": "in_progress"})
    assert started.get_json()["status"] == "in_progress"

    hours = client.patch(f"/api/v1/staff/jobs/{booking.id}/hours", json={"hours": 2.5})
    assert hours.get_json()["staff_hours_worked"] == 2.5

    done = client.patch(f"/api/v1/staff/jobs/{booking.id}/status", json={"status": "completed"})
    assert done.status_code == 200
    assert done.get_json()["completed_at"] is not None


def test_staff_cannot_see_other_jobs(client, make_user, staff, make_booking):
    other = make_user("staff")
    booking = make_booking(status="confirmed", staff_id=other.id)
    login(client, staff)
    assert client.get(f"/api/v1/staff/jobs/{booking.id}").status_code == 404
    assert client.patch(f"/api/v1/staff/jobs/{booking.id}/status", json={"status": "in_progress"}).status_code == 403


def test_admin_without_booking_flag_is_refused(client, make_user, make_booking):
    admin = make_user("admin", permissions=[CAN_MANAGE_PAYMENTS])
    booking = make_booking()
    login(client, admin)

    response = client.patch(f"/api/v1/admin/bookings/{booking.id}/status", json={"status": "completed"})
    assert response.status_code == 403

    db.session.expire_all()
    assert db.session.get(Booking, booking.id).status == "pending"


def test_admin_assigns_then_derives_payroll(client, super_admin, staff, make_booking):
    booking = make_booking()
    login(client, super_admin)

    assigned = client.post(f"/api/v1/admin/bookings/{booking.id}/assign", json={"staff_id": staff.id})
    assert assigned.get_json()["status"] == "confirmed"

    client.patch(f"/api/v1/admin/bookings/{booking.id}", json={"staff_hours_worked": "10"})
    client.patch(f"/api/v1/admin/bookings/{booking.id}/status", json={"status": "completed"})

    eligible = client.get("/api/v1/admin/payroll/bookings").get_json()
    assert [row["payroll_created"] for row in eligible] == [False]

    body = {"hourly_rate": 30, "bonus": 50, "tax_percent": 20, "other_deductions": 10}
    created = client.post(f"/api/v1/admin/payroll/bookings/{booking.id}", json=body)
    assert created.status_code == 201
    payroll = created.get_json()
    assert payroll["gross_pay"] == 340.0
    assert payroll["net_pay"] == 272.0
    assert payroll["superannuation"] == 39.1

    again = client.post(f"/api/v1/admin/payroll/bookings/{booking.id}", json=body)
    assert again.status_code == 409

    paid = client.patch(f"/api/v1/admin/payroll/{payroll['id']}/status", json={"payment_status": "paid"})
    assert paid.get_json()["payment_date"] is not None

    db.session.expire_all()
    assert Decimal(str(db.session.get(Booking, booking.id).actual_cost)) == Decimal("340.00")


def test_payroll_preview(client, super_admin):
    login(client, super_admin)
    response = client.post("/api/v1/admin/payroll/preview", json={"hours_worked": 0, "hourly_rate": 0})
    assert response.get_json() == {"gross": 0.0, "tax": 0.0, "superannuation": 0.0, "net": 0.0}


def test_admin_unassign_resets_status(client, super_admin, staff, make_booking):
    booking = make_booking(status="in_progress", staff_id=staff.id)
    login(client, super_admin)
    response = client.post(f"/api/v1/admin/bookings/{booking.id}/unassign")
    data = response.get_json()
    assert data["status"] == "pending"
    assert data["staff_id"] is None


def test_admin_creates_staff_account(client, super_admin, outbox):
    login(client, super_admin)
    response = client.post(
        "/api/v1/admin/users",
        json={"role": "staff", "full_name": "Taylor Clean", "email": "taylor@example.com", "hourly_rate": "35"},
    )
    assert response.status_code == 201
    data = response.get_json()
    assert data["temp_password"]
    assert outbox[-1]["kind"] == "account_created"

    staff_list = client.get("/api/v1/admin/staff").get_json()
    assert staff_list[0]["details"]["hourly_rate"] == 35.0


def test_admin_updates_permissions(client, super_admin, make_user):
    target = make_user("admin")
    login(client, super_admin)
    response = client.patch(
        f"/api/v1/admin/admins/{target.id}/permissions",
        json={"permissions": {"can_view_reports": True}, "admin_level": "manager"},
    )
    data = response.get_json()
    assert data["can_view_reports"] is True
    assert data["can_manage_bookings"] is False
    assert data["admin_level"] == "manager"


def test_staff_notifications_after_assignment(client, super_admin, staff, make_booking):
    from touchclean.services import BookingService

    BookingService.assign_staff(make_booking(), staff.id, super_admin)
    login(client, staff)
    data = client.get("/api/v1/notifications/me").get_json()
    assert data["unread"] == 1
    assert data["items"][0]["title"] == "New job assigned"

    client.post("/api/v1/notifications/me/read")
    assert client.get("/api/v1/notifications/me").get_json()["unread"] == 0


def test_public_enquiry_and_stats(client, make_booking):
    make_booking(status="completed")
    response = client.post(
        "/api/v1/enquiries",
        json={"name": "Jamie", "email": "jamie@example.com", "message": "Do you clean carpets in Parramatta?"},
    )
    assert response.status_code == 201
    assert response.get_json()["status"] == "new"

    stats = client.get("/api/v1/stats").get_json()
    assert stats["completed_jobs"] == 1


def test_staff_earnings_endpoint(client, staff):
    login(client, staff)
    data = client.get("/api/v1/staff/earnings").get_json()
    assert data["total_paid"] == 0.0
    assert data["payroll"] == []
    assert data["staff"]["details"]["total_tasks_completed"] == 0


def test_non_string_status_is_a_bad_request(client, super_admin, make_booking):
    booking = make_booking()
    login(client, super_admin)

    response = client.patch(f"/api/v1/admin/bookings/{booking.id}/status", json={"status": 5})
    assert response.status_code == 400
    assert "error" in response.get_json()

    db.session.expire_all()
    assert db.session.get(Booking, booking.id).status == "pending"


def test_non_string_staff_status_is_a_bad_request(client, staff, make_booking):
    booking = make_booking(staff_id=staff.id)
    login(client, staff)
    response = client.patch(f"/api/v1/staff/jobs/{booking.id}/status", json={"status": ["confirmed"]})
    assert response.status_code == 409
