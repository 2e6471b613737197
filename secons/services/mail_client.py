# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""HTTP client to dispatch transactional email."""
import httpx

from secons.core.config import settings
from secons.core.logging import get_logger

logger = get_logger(__name__)


class MailClient:
    def send(self, to: str, subject: str, html: str) -> bool:
        """Deliver one message. Returns False on any failure; never raises."""
        if not settings.MAIL_API_URL:
            logger.info("Mail API not configured; would send '%s' to %s", subject, to)
            return True
        try:
            with httpx.Client(timeout=settings.MAIL_TIMEOUT) as client:
                resp = client.post(
                    settings.MAIL_API_URL,
                    headers={"Authorization": f"Bearer {settings.MAIL_API_KEY}"},
                    json={"from": settings.MAIL_FROM, "to": [to],
                          "subject": subject, "html": html},
                )
            if resp.status_code >= 400:
                logger.warning("Mail API rejected message to %s: HTTP %s", to, resp.status_code)
                return False
            return True
        except httpx.RequestError as exc:
            logger.warning("Mail API unreachable: %s", exc)
            return False
