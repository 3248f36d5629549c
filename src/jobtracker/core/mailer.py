from __future__ import annotations

import html
import logging
from urllib.parse import urlencode

import requests

from jobtracker.config import Settings, get_settings

logger = logging.getLogger(__name__)


class Mailer:
    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def send_email(self, to: str, subject: str, html_content: str, plain_text: str = "") -> bool:
        if not self.settings.sendgrid_api_key:
            logger.warning("Skipping email to %s: SendGrid API key is not configured", to)
            return False

        content = []
        if plain_text:
            content.append({"type": "text/plain", "value": plain_text})
        content.append({"type": "text/html", "value": html_content})
        message = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": self.settings.email_from, "name": self.settings.email_from_name},
            "subject": subject,
            "content": content,
        }
        try:
            response = requests.post(
                self.settings.sendgrid_api_url,
                json=message,
                headers={"Authorization": f"Bearer {self.settings.sendgrid_api_key}"},
                timeout=self.settings.email_timeout_sec,
            )
        except requests.RequestException as exc:
            logger.error("Exception while sending email to %s: %s", to, exc)
            return False

        if response.status_code in (200, 202):
            logger.info("Email sent to %s with subject: %s", to, subject)
            return True
        logger.error("Failed to send email. Status code: %s, Response: %s", response.status_code, response.text)
        return False

    def _link(self, path: str, **params: str) -> str:
        return f"{self.settings.frontend_link(path)}?{urlencode(params)}"

    def send_verification_email(self, email: str, token: str) -> bool:
        link = f"{self.settings.api_public_url.rstrip('/')}/verify-email?{urlencode({'token': token, 'email': email})}"
        body = f"""
        <html>
        <body>
            <h2>Verify Your Email Address</h2>
            <p>Thank you for registering! Please verify your email address.</p>
            <p><a href="{html.escape(link)}">Verify Email</a></p>
            <p>If you didn't register for an account, please ignore this email.</p>
        </body>
        </html>"""
        return self.send_email(email, "Verify Your Email Address", body, f"Verify your email by opening this link: {link}")

    def send_password_reset_email(self, email: str, token: str) -> bool:
        link = self._link(self.settings.reset_password_path, token=token, email=email)
        minutes = self.settings.password_reset_expiry_minutes
        body = f"""
        <html>
        <body>
            <h2>Reset Your Password</h2>
            <p>You've requested to reset your password.</p>
            <p><a href="{html.escape(link)}">Reset Password</a></p>
            <p>If you didn't request this, please ignore this email.</p>
            <p>The link will expire in {minutes} minutes.</p>
        </body>
        </html>"""
        return self.send_email(email, "Reset Your Password", body, f"Reset your password by opening this link: {link}")

    def send_email_change_confirmation(self, current_email: str, new_email: str, token: str) -> bool:
        link = self._link(
            self.settings.confirm_email_change_path,
            token=token,
            email=current_email,
            new_email=new_email,
        )
        body = f"""
        <html>
        <body>
            <h2>Confirm Your New Email Address</h2>
            <p>Please confirm that you want to use this address for your account.</p>
            <p><a href="{html.escape(link)}">Confirm Email</a></p>
        </body>
        </html>"""
        return self.send_email(new_email, "Confirm Your New Email Address", body, f"Confirm your new email: {link}")

    def send_account_deletion_confirmation(self, email: str) -> bool:
        body = """
        <html>
        <body>
            <h2>Account Deletion Confirmation</h2>
            <p>Your account has been successfully deleted from our system.</p>
            <p>All your personal data and job applications have been removed.</p>
        </body>
        </html>"""
        return self.send_email(
            email,
            "Your Account Has Been Deleted",
            body,
            "Your account has been successfully deleted. All your personal data and job applications have been removed.",
        )

    def send_application_status_update(
        self,
        email: str,
        company_name: str,
        position: str,
        status: str,
        feedback: str | None = None,
    ) -> bool:
        feedback_html = f"<p><strong>Feedback:</strong> {html.escape(feedback)}</p>" if feedback else ""
        body = f"""
        <html>
        <body>
            <h2>Application Status Update</h2>
            <p>There's an update on your application for the <strong>{html.escape(position)}</strong>
            position at <strong>{html.escape(company_name)}</strong>.</p>
            <p>Your application status has been changed to: <strong>{html.escape(status)}</strong></p>
            {feedback_html}
        </body>
        </html>"""
        plain = f"Update on your application for the {position} position at {company_name}. Status: {status}."
        if feedback:
            plain += f"\nFeedback: {feedback}"
        return self.send_email(email, f"Update on your application to {company_name}", body, plain)
