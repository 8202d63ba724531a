"""ZeptoMail implementation of EmailProvider.

Both messages are a link plus its lifetime: the activation link carries the
signup nonce, the reset link carries the raw reset token. The HTML body comes
from templates/emails/<name>.html, the plain text body is built inline.

Delivery problems are reported as False; the caller decides what a failed
delivery means for its flow.
"""

import os
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import EmailSettings
from infrastructure.http_client import HttpClient
from shared.logging import get_logger

log = get_logger(__name__)

_ZEPTO_API_URL = "https://api.zeptomail.in/v1.1/email"
_AUTH_PREFIX = "Zoho-enczapikey "
_ACCEPTED = (200, 201, 202)
_DEFAULT_TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "templates",
    "emails",
)


def _auth_header(api_token: str) -> str:
    if api_token.startswith(_AUTH_PREFIX):
        return api_token
    return f"{_AUTH_PREFIX}{api_token}"


class ZeptoMailProvider:
    def __init__(
        self,
        settings: EmailSettings,
        http_client: HttpClient,
        app_name: str = "auth-core",
        activation_ttl_seconds: int = 600,
        reset_ttl_seconds: int = 600,
        template_dir: str = _DEFAULT_TEMPLATE_DIR,
    ) -> None:
        self._settings = settings
        self._http = http_client
        self._app_name = app_name
        self._activation_minutes = max(1, activation_ttl_seconds // 60)
        self._reset_minutes = max(1, reset_ttl_seconds // 60)
        self._jinja = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
        )

    async def send_activation_email(
        self, email: str, user_name: Optional[str], nonce: str, link: str
    ) -> bool:
        return await self._send_link(
            kind="activation",
            template="activation.html",
            heading="Activate your account",
            action="finish signing up",
            to_email=email,
            user_name=user_name,
            link=link,
            expires_minutes=self._activation_minutes,
        )

    async def send_password_reset_email(
        self, email: str, user_name: Optional[str], raw_token: str, link: str
    ) -> bool:
        return await self._send_link(
            kind="password_reset",
            template="password_reset.html",
            heading="Reset your password",
            action="choose a new password",
            to_email=email,
            user_name=user_name,
            link=link,
            expires_minutes=self._reset_minutes,
        )

    async def _send_link(
        self,
        *,
        kind: str,
        template: str,
        heading: str,
        action: str,
        to_email: str,
        user_name: Optional[str],
        link: str,
        expires_minutes: int,
    ) -> bool:
        if not self._settings.zepto_api_token:
            log.error("email_send_failed", kind=kind, reason="token_not_configured")
            return False

        subject = f"{heading} - {self._app_name}"
        greeting = f"Hello {user_name}," if user_name else "Hello,"
        html_body = self._jinja.get_template(template).render(
            user_name=user_name,
            link=link,
            app_name=self._app_name,
            expires_minutes=expires_minutes,
        )
        text_body = (
            f"{subject}\n\n{greeting}\n\n"
            f"Open this link to {action}: {link}\n\n"
            f"This link expires in {expires_minutes} minutes."
        )

        payload = {
            "from": {
                "address": self._settings.zepto_from_email,
                "name": self._settings.zepto_from_name,
            },
            "to": [{"email_address": {"address": to_email, "name": user_name or to_email}}],
            "subject": subject,
            "htmlbody": html_body,
            "textbody": text_body,
        }
        headers = {
            "Authorization": _auth_header(self._settings.zepto_api_token),
            "Content-Type": "application/json",
        }

        try:
            response = await self._http.post(_ZEPTO_API_URL, json=payload, headers=headers)
        except Exception as e:
            log.error("email_send_failed", kind=kind, error_type=type(e).__name__)
            return False

        if response.status_code not in _ACCEPTED:
            log.error(
                "email_send_failed",
                kind=kind,
                status_code=response.status_code,
                response=response.text[:200],
            )
            return False

        log.info("email_sent", kind=kind)
        return True
