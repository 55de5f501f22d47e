import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import parseaddr

from flask import current_app, render_template
from jinja2 import TemplateError

EMAIL_SUBJECTS = {
    "booking": "Booking Confirmed - {service_type} on {preferred_date}",
    "work_assigned": "Your Cleaner Has Been Assigned - {service_type} on {preferred_date}",
    "enquiry": "We've Received Your Enquiry - Touch Cleaning",
    "enquiry_reply": "Re: Your Enquiry - Touch Cleaning",
    "account_created": "Your Touch Cleaning {role} account is ready",
}


class _BlankMissing(dict):
    def __missing__(self, key):
        return ""


class EmailService:
    @staticmethod
    def render(kind, fields):
        if kind not in EMAIL_SUBJECTS:
            raise ValueError(f"Unknown email template: {kind}")
        subject = EMAIL_SUBJECTS[kind].format_map(_BlankMissing(fields))
        html = render_template(f"emails/{kind}.html", data=fields, subject=subject)
        return subject, html

    @staticmethod
    def send(kind, to, fields, cc=None):
        """Best-effort send. Returns False instead of raising on any failure."""
        log = current_app.logger
        if not to:
            log.warning("Email %s skipped: no recipient", kind)
            return False
        try:
            subject, html = EmailService.render(kind, fields or {})
        except (ValueError, TemplateError):
            log.exception("Email %s could not be rendered", kind)
            return False

        config = current_app.config
        sender = config["MAIL_DEFAULT_SENDER"]
        recipients = [to] + list(cc or [])

        if config.get("MAIL_SUPPRESS_SEND"):
            outbox = current_app.extensions.setdefault("mail_outbox", [])
            outbox.append({"kind": kind, "to": to, "cc": list(cc or []), "subject": subject, "html": html})
            log.info("Email %s to %s suppressed", kind, to)
            return True

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = sender
        msg["To"] = to
        if cc:
            msg["Cc"] = ", ".join(cc)
        msg.attach(MIMEText(html, "html"))

        host = config["MAIL_SERVER"]
        port = config["MAIL_PORT"]
        timeout = config["MAIL_TIMEOUT"]
        try:
            if port == 465:
                server = smtplib.SMTP_SSL(host, port, context=ssl.create_default_context(), timeout=timeout)
            else:
                server = smtplib.SMTP(host, port, timeout=timeout)
                if config.get("MAIL_USE_TLS"):
                    server.starttls(context=ssl.create_default_context())
            try:
                if config.get("MAIL_USERNAME"):
                    server.login(config["MAIL_USERNAME"], config.get("MAIL_PASSWORD") or "")
                server.sendmail(parseaddr(sender)[1], recipients, msg.as_string())
            finally:
                server.quit()
        except (smtplib.SMTPException, OSError):
            log.exception("Email %s to %s failed", kind, to)
            return False

        log.info("Email %s sent to %s", kind, to)
        return True
