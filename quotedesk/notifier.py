from __future__ import annotations
from typing import Callable, Optional, Tuple
import html
import logging

from quotedesk.catalog import Catalog
from quotedesk.classes.quote import QuoteRequest, parse_timestamp
from quotedesk.errors import NotificationError
from quotedesk.runtime_settings import Settings
from quotedesk.utils.mailgun_client import send_email

log = logging.getLogger("quotedesk.notifier")

DIAGNOSTICS = {
    NotificationError.AUTH: "Authentication failed. Check MAILGUN_API_KEY and MAILGUN_DOMAIN.",
    NotificationError.CONNECTION: "Connection failed. Check network access to the mail relay.",
}


class QuoteNotifier:
    """Emails the operator when a quote request arrives.

    Best effort: notify() never raises, never retries and never queues. A
    failed notification is logged and lost.
    """

    def __init__(self, settings: Settings, catalog: Catalog, sender: Callable[..., str] = send_email):
        self.settings = settings
        self.catalog = catalog
        self.sender = sender

    @property
    def recipient(self) -> Optional[str]:
        return self.settings.NOTIFICATIONS_EMAIL or self.catalog.notify_email

    def verify(self) -> bool:
        """Startup check; logs whether notifications can be delivered."""
        if not self.settings.mail_configured:
            log.warning("Mail relay not configured (MAILGUN_DOMAIN / MAILGUN_API_KEY); quote notifications disabled")
            return False
        if not self.recipient:
            log.warning("No operator address configured (NOTIFICATIONS_EMAIL); quote notifications disabled")
            return False
        log.info("Mail relay ready, notifications go to %s", self.recipient)
        return True

    def _fields(self, q: QuoteRequest) -> list[Tuple[str, str]]:
        try:
            submitted = parse_timestamp(q.created_at).strftime("%Y-%m-%d %H:%M UTC")
        except ValueError:
            submitted = q.created_at
        return [
            ("Name", q.name),
            ("Email", q.email),
            ("Phone", q.phone),
            ("Company", q.company or "Not provided"),
            ("Project Type", self.catalog.label("projectType", q.project_type)),
            ("Budget", self.catalog.label("budget", q.budget)),
            ("Timeline", self.catalog.label("timeline", q.timeline)),
            ("Status", self.catalog.label("status", q.status)),
            ("Submitted", submitted),
        ]

    def build_message(self, q: QuoteRequest) -> Tuple[str, str, str]:
        """Return (subject, text, html) for a new quote."""
        subject = f"New Quote Request from {q.name}"
        fields = self._fields(q)

        lines = ["New Quote Request Received", ""]
        lines += [f"{k}: {v}" for k, v in fields]
        lines += ["", "Description:", q.description, "", f"Reference: {q.id}"]
        text = "\n".join(lines)

        rows = "".join(f"<p><strong>{k}:</strong> {html.escape(v)}</p>" for k, v in fields)
        body_html = (
            "<h2>New Quote Request Received</h2>"
            f"{rows}"
            "<p><strong>Description:</strong></p>"
            f"<p>{html.escape(q.description)}</p>"
        )
        return subject, text, body_html

    def notify(self, q: QuoteRequest) -> bool:
        if not self.settings.mail_configured or not self.recipient:
            log.warning("Skipping notification for quote %s: mail relay not configured", q.id,
                        extra={"quote_id": q.id})
            return False

        subject, text, body_html = self.build_message(q)
        try:
            message_id = self.sender(
                to=self.recipient,
                subject=subject,
                text=text,
                html=body_html,
                domain=self.settings.MAILGUN_DOMAIN,
                api_key=self.settings.MAILGUN_API_KEY,
                sender_name=f"{self.catalog.business_name} Notifications",
                base_url=self.settings.MAILGUN_BASE_URL,
            )
        except NotificationError as e:
            log.error("Error sending notification for quote %s: %s", q.id, e,
                      extra={"quote_id": q.id, "kind": e.kind})
            if e.kind in DIAGNOSTICS:
                log.error(DIAGNOSTICS[e.kind])
            return False
        except Exception:
            # a broken sender must never surface in the request that created the quote
            log.exception("Unexpected error sending notification for quote %s", q.id)
            return False

        log.info("Quote notification sent for %s (message id %s)", q.id, message_id or "?",
                 extra={"quote_id": q.id})
        return True
