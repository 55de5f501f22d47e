import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from typing import Optional

from flask import current_app

from touchclean.services.email_service import EmailService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingCreated:
    booking_id: int
    email: str
    first_name: str
    last_name: str
    phone: str
    service_type: str
    property_type: str
    booking_type: str
    preferred_date: str
    service_address: str
    selected_services: list = field(default_factory=list)
    notes: Optional[str] = None


@dataclass(frozen=True)
class BookingAssigned:
    booking_id: int
    customer_email: str
    customer_name: str
    staff_id: int
    staff_name: str
    service_type: str
    preferred_date: str
    service_address: str
    previous_staff_id: Optional[int] = None

    @property
    def is_reassignment(self):
        return self.previous_staff_id is not None and self.previous_staff_id != self.staff_id


@dataclass(frozen=True)
class EnquiryReceived:
    enquiry_id: int
    name: str
    email: str
    message: str
    phone: Optional[str] = None
    service_interest: Optional[str] = None


@dataclass(frozen=True)
class EnquiryReplied:
    enquiry_id: int
    name: str
    email: str
    reply_message: str


@dataclass(frozen=True)
class AccountCreated:
    user_id: int
    full_name: str
    email: str
    role: str
    temp_password: Optional[str] = None


def _send_booking_confirmation(event):
    return EmailService.send("booking", event.email, asdict(event))


def _send_work_assignment(event):
    fields = asdict(event)
    fields["is_reassignment"] = event.is_reassignment
    return EmailService.send("work_assigned", event.customer_email, fields)


def _send_enquiry_confirmation(event):
    return EmailService.send("enquiry", event.email, asdict(event))


def _send_enquiry_reply(event):
    return EmailService.send("enquiry_reply", event.email, asdict(event))


def _send_account_created(event):
    return EmailService.send("account_created", event.email, asdict(event))


HANDLERS = {
    BookingCreated: _send_booking_confirmation,
    BookingAssigned: _send_work_assignment,
    EnquiryReceived: _send_enquiry_confirmation,
    EnquiryReplied: _send_enquiry_reply,
    AccountCreated: _send_account_created,
}


class NotificationDispatcher:
    def __init__(self, app=None):
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        previous = app.extensions.get("notification_executor")
        if previous is not None:
            previous.shutdown(wait=False)
        executor = None
        if app.config.get("MAIL_ASYNC"):
            executor = ThreadPoolExecutor(
                max_workers=app.config.get("MAIL_WORKERS", 2),
                thread_name_prefix="touchclean-notify",
            )
        app.extensions["notification_executor"] = executor

    @staticmethod
    def executor_for(app):
        return app.extensions.get("notification_executor")

    def emit(self, event):
        handler = HANDLERS.get(type(event))
        if handler is None:
            raise TypeError(f"No notification handler for {type(event).__name__}")
        app = current_app._get_current_object()
        executor = self.executor_for(app)
        if executor is None:
            return self._run(handler, event)
        return executor.submit(self._run_in_context, app, handler, event)

    def _run_in_context(self, app, handler, event):
        with app.app_context():
            return self._run(handler, event)

    @staticmethod
    def _run(handler, event):
        name = type(event).__name__
        try:
            sent = handler(event)
        except Exception:
            logger.exception("Notification dispatch for %s raised", name)
            return False
        if not sent:
            logger.warning("Notification dispatch for %s did not send", name)
        return bool(sent)


dispatcher = NotificationDispatcher()


def emit(event):
    """Fire-and-forget: never raises into the workflow that triggered it."""
    try:
        return dispatcher.emit(event)
    except Exception:
        logger.exception("Could not schedule notification %s", type(event).__name__)
        return False
