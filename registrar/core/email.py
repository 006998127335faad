"""
Email utilities for sending emails.
This module provides utilities for sending registrar notifications using SMTP.

Every send is best-effort: failures are logged and reported as ``False``,
never raised, so a mail outage cannot undo a request or a status change.
"""
import asyncio
import smtplib
from datetime import date
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape
from typing import Any, Callable, Iterable, Optional, Sequence, Tuple

from registrar.core.config import settings
from registrar.core.logging import logger

SIGNATURE = "<p>Thank you,<br>Office of the Registrar</p>"


class EmailService:
    """Service for sending emails."""

    @staticmethod
    def _send(recipient: Optional[str], subject: str, html: str) -> bool:
        """
        Send one HTML email.

        Args:
            recipient: Recipient email address
            subject: Subject line
            html: HTML body

        Returns:
            True if email sent successfully, False otherwise
        """
        email_settings = settings.email
        if not email_settings.enabled:
            logger.debug(f"Email notifications disabled; skipped '{subject}' to {recipient}")
            return False
        if not recipient:
            logger.warning(f"No recipient for '{subject}', email not sent")
            return False

        try:
            message = MIMEMultipart()
            message["From"] = email_settings.from_email
            message["To"] = recipient
            message["Subject"] = subject
            message.attach(MIMEText(html, "html"))

            with smtplib.SMTP(email_settings.smtp_host, email_settings.smtp_port, timeout=30) as server:
                if email_settings.use_tls:
                    server.starttls()
                if email_settings.username and email_settings.password_str:
                    server.login(email_settings.username, email_settings.password_str)
                server.send_message(message)

            logger.info(f"Email '{subject}' sent to {recipient}")
            return True

        except Exception as e:
            logger.error(f"Failed to send email '{subject}' to {recipient}: {str(e)}")
            return False

    @staticmethod
    def send_submission_summary(
        email: Optional[str],
        name: str,
        reference_number: str,
        documents: Sequence[Tuple[str, int]],
        total_amount: float,
    ) -> bool:
        """
        Confirm a new request to the requester.

        Args:
            email: Requester email address
            name: Requester display name
            reference_number: Tracking reference
            documents: (document name, quantity) pairs
            total_amount: Amount due

        Returns:
            True if email sent successfully, False otherwise
        """
        rows = "".join(
            f"<li>{escape(doc_name)} &times; {quantity}</li>" for doc_name, quantity in documents
        )
        html = f"""
        <html>
        <body>
            <h2>Document Request Received</h2>
            <p>Dear {escape(name)},</p>
            <p>We received your document request. Your reference number is
            <strong>{escape(reference_number)}</strong>.</p>
            <ul>{rows}</ul>
            <p>Total amount: <strong>PHP {total_amount:,.2f}</strong></p>
            <p>You can track the status of your request with the reference number above.</p>
            {SIGNATURE}
        </body>
        </html>
        """
        return EmailService._send(email, f"Document Request {reference_number} Received", html)

    @staticmethod
    def send_ready_for_pickup(
        email: Optional[str],
        name: str,
        reference_number: str,
        documents: Iterable[str],
        pickup_date: Optional[date],
    ) -> bool:
        """
        Tell the requester their documents can be collected.

        Args:
            email: Requester email address
            name: Requester display name
            reference_number: Tracking reference
            documents: Requested document names
            pickup_date: Scheduled pickup date, if set

        Returns:
            True if email sent successfully, False otherwise
        """
        document_list = ", ".join(escape(doc) for doc in documents) or "your requested documents"
        when = pickup_date.strftime("%B %d, %Y") if pickup_date else "during office hours"
        html = f"""
        <html>
        <body>
            <h2>Your Documents Are Ready for Pickup</h2>
            <p>Dear {escape(name)},</p>
            <p>Your request <strong>{escape(reference_number)}</strong> is ready.</p>
            <p>Documents: {document_list}</p>
            <p>Pickup schedule: <strong>{when}</strong></p>
            <p>Please bring a valid ID and your reference number.</p>
            {SIGNATURE}
        </body>
        </html>
        """
        return EmailService._send(email, f"Document Request {reference_number} Ready for Pickup", html)

    @staticmethod
    def send_password_reset_email(email: str, reset_token: str) -> bool:
        """
        Send a password reset email.

        Args:
            email: Recipient email address
            reset_token: Password reset token

        Returns:
            True if email sent successfully, False otherwise
        """
        frontend = settings.frontend_urls[0] if settings.frontend_urls else ""
        minutes = settings.security.password_reset_token_expire_minutes
        html = f"""
        <html>
        <body>
            <h2>Password Reset Request</h2>
            <p>You have requested to reset your password for the registrar portal.</p>
            <p><a href="{frontend}/reset-password?token={reset_token}">Reset Password</a></p>
            <p>If you did not request this password reset, please ignore this email.</p>
            <p>This link will expire in {minutes} minutes.</p>
            {SIGNATURE}
        </body>
        </html>
        """
        return EmailService._send(email, "Registrar Portal - Password Reset", html)


async def dispatch(send: Callable[..., bool], *args: Any) -> bool:
    """
    Run a blocking notifier method off the event loop.

    Any exception from the notifier is logged and swallowed so the caller's
    already-committed work stands.
    """
    try:
        return bool(await asyncio.to_thread(send, *args))
    except Exception as e:
        logger.opt(exception=e).error(f"Notification {getattr(send, '__name__', send)} failed: {e}")
        return False
