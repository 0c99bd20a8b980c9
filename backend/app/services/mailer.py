import logging
from functools import lru_cache
from html import escape
from typing import Optional

import requests

from app.config import settings
from app.texts import get_text

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class MailerError(RuntimeError):
    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status


class Mailer:
    def __init__(self, *, api_key: Optional[str], sender: str, request_timeout: float = 15.0) -> None:
        self._api_key = api_key
        self._sender = sender
        self._timeout = request_timeout

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    def send(self, to: str, subject: str, html: str, reply_to: Optional[str] = None) -> str:
        if not self._api_key:
            raise MailerError(503, "Email delivery is not configured")
        payload = {"from": self._sender, "to": [to], "subject": subject, "html": html}
        if reply_to:
            payload["reply_to"] = reply_to
        try:
            response = requests.post(
                RESEND_API_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise MailerError(502, f"Email provider unreachable: {exc}") from exc
        if response.status_code >= 400:
            raise MailerError(response.status_code, f"Email provider error: {response.text}")
        return str((response.json() or {}).get("id") or "")

    def send_invitation(self, to: str, project_name: str) -> str:
        link = f"{settings.app_url}/contratista"
        html = (
            f"<p>Has sido invitado a participar en el proyecto <strong>{escape(project_name)}</strong>.</p>"
            f"<p>Ingresa a <a href=\"{link}\">{link}</a> para revisar tu contrato y cargar tus documentos.</p>"
        )
        return self.send(to, get_text("invitation.subject", name=project_name), html)

    def send_contact(
        self,
        company: str,
        email: str,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        message: Optional[str] = None,
    ) -> str:
        rows = [
            ("Empresa", company),
            ("Nombre", name),
            ("Correo", email),
            ("Teléfono", phone),
            ("Mensaje", message),
        ]
        html = "".join(
            f"<p><strong>{label}:</strong> {escape(value)}</p>" for label, value in rows if value
        )
        return self.send(
            settings.contact_email,
            get_text("contact.subject", company=company),
            html,
            reply_to=email,
        )


@lru_cache(maxsize=1)
def get_mailer() -> Mailer:
    if not settings.resend_api_key:
        logger.warning("RESEND_API_KEY is not configured. Emails are disabled.")
    return Mailer(api_key=settings.resend_api_key, sender=settings.resend_from_email)
