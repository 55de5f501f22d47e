import smtplib

import pytest

from touchclean.extensions import db
from touchclean.models import Booking
from touchclean.services import BookingService, EmailService
from touchclean.services import dispatch
from touchclean.services.dispatch import BookingAssigned, EnquiryReplied, NotificationDispatcher


def _explode(*_args, **_kwargs):
    raise RuntimeError("mail relay down")


def test_email_failure_does_not_roll_back_assignment(monkeypatch, make_booking, super_admin, staff):
    monkeypatch.setattr(EmailService, "send", staticmethod(_explode))
    booking = make_booking()

    BookingService.assign_staff(booking, staff.id, super_admin)

    db.session.expire_all()
    stored = db.session.get(Booking, booking.id)
    assert stored.staff_id == staff.id
    assert stored.status == "confirmed"


def test_smtp_error_is_reported_as_false(monkeypatch, app):
    app.config["MAIL_SUPPRESS_SEND"] = False

    def refuse(*_args, **_kwargs):
        raise smtplib.SMTPConnectError(421, "try later")

    monkeypatch.setattr(smtplib, "SMTP", refuse)
    ok = EmailService.send("enquiry", "someone@example.com", {"name": "Pat", "message": "Hello there team"})
    assert ok is False


def test_send_without_recipient_is_skipped(app, outbox):
    assert EmailService.send("booking", "", {"first_name": "Pat"}) is False
    assert outbox == []


def test_unknown_template_kind_is_reported_as_false(app):
    assert EmailService.send("newsletter", "someone@example.com", {}) is False


def test_handler_exception_is_logged_not_raised(monkeypatch, app, caplog):
    monkeypatch.setitem(dispatch.HANDLERS, EnquiryReplied, _explode)
    event = EnquiryReplied(enquiry_id=1, name="Pat", email="pat@example.com", reply_message="Thanks")
    with caplog.at_level("ERROR"):
        assert dispatch.emit(event) is False
    assert "EnquiryReplied" in caplog.text


def test_unregistered_event_type_is_contained(app):
    assert dispatch.emit(object()) is False


def test_reassignment_flag():
    base = dict(
        booking_id=1,
        customer_email="c@example.com",
        customer_name="Casey",
        staff_id=2,
        staff_name="Sam",
        service_type="Residential",
        preferred_date="2030-01-01",
        service_address="12 Harbour St",
    )
    assert not BookingAssigned(**base).is_reassignment
    assert BookingAssigned(previous_staff_id=3, **base).is_reassignment
    assert not BookingAssigned(previous_staff_id=2, **base).is_reassignment


def test_async_dispatch_runs_in_app_context(app, outbox):
    app.config["MAIL_ASYNC"] = True
    worker = NotificationDispatcher(app)
    try:
        event = EnquiryReplied(enquiry_id=7, name="Pat", email="pat@example.com", reply_message="All booked in")
        future = worker.emit(event)
        assert future.result(timeout=5) is True
    finally:
        NotificationDispatcher.executor_for(app).shutdown(wait=True)
    assert outbox[-1]["kind"] == "enquiry_reply"
    assert "All booked in" in outbox[-1]["html"]


@pytest.mark.parametrize("kind", ["booking", "work_assigned", "enquiry", "enquiry_reply", "account_created"])
def test_every_template_renders(app, kind):
    subject, html = EmailService.render(
        kind,
        {
            "booking_id": 1,
            "first_name": "Pat",
            "name": "Pat",
            "full_name": "Pat Lee",
            "customer_name": "Pat Lee",
            "staff_name": "Sam",
            "service_type": "Residential",
            "preferred_date": "2030-01-01",
            "service_address": "12 Harbour St",
            "message": "Need a quote",
            "reply_message": "Sure",
            "email": "pat@example.com",
            "role": "staff",
        },
    )
    assert subject
    assert "Touch Cleaning" in html


def test_reinit_replaces_and_shuts_down_executor(app):
    app.config["MAIL_ASYNC"] = True
    worker = NotificationDispatcher(app)
    first = NotificationDispatcher.executor_for(app)
    worker.init_app(app)
    second = NotificationDispatcher.executor_for(app)
    try:
        assert second is not first
        with pytest.raises(RuntimeError):
            first.submit(lambda: None)
    finally:
        second.shutdown(wait=True)


def test_executors_are_per_app(app):
    from touchclean import create_app

    assert NotificationDispatcher.executor_for(app) is None
    other = create_app("testing")
    other.config["MAIL_ASYNC"] = True
    NotificationDispatcher(other)
    try:
        assert NotificationDispatcher.executor_for(app) is None
        assert NotificationDispatcher.executor_for(other) is not None
    finally:
        NotificationDispatcher.executor_for(other).shutdown(wait=True)
