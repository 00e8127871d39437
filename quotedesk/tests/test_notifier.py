import logging

import requests

from quotedesk.classes.quote import QuoteRequest
from quotedesk.errors import NotificationError
from quotedesk.notifier import QuoteNotifier
from quotedesk.runtime_settings import Settings
from quotedesk.utils import mailgun_client


def make_quote(**overrides):
    data = dict(
        id="q-42", name="Jane Roe", email="jane@x.com", phone="+15551234567", company="",
        project_type="ecommerce", budget="10k-25k", timeline="2-3-months",
        description="Online shop for <b>sourdough</b> subscriptions", status="new",
        created_at="2025-03-01T10:00:00.000Z", updated_at="2025-03-01T10:00:00.000Z",
    )
    data.update(overrides)
    return QuoteRequest(**data)


def test_message_uses_catalog_labels(notifier):
    subject, text, html = notifier.build_message(make_quote())

    assert subject == "New Quote Request from Jane Roe"
    assert "Project Type: E-commerce Store" in text
    assert "Budget: $10,000 - $25,000" in text
    assert "Timeline: 2-3 Months" in text
    assert "Company: Not provided" in text
    assert "Submitted: 2025-03-01 10:00 UTC" in text
    assert "&lt;b&gt;sourdough&lt;/b&gt;" in html


def test_notify_sends_to_operator(notifier, sent_emails):
    assert notifier.notify(make_quote()) is True

    sent = sent_emails[0]
    assert sent["to"] == "owner@example.com"
    assert sent["domain"] == "mg.example.com"
    assert sent["api_key"] == "key-test"
    assert sent["sender_name"] == "Chuma Grandmaster Notifications"


def test_recipient_falls_back_to_site_config(catalog):
    settings = Settings(MAILGUN_DOMAIN="mg.example.com", MAILGUN_API_KEY="key")
    assert QuoteNotifier(settings, catalog).recipient == "ChumaGrandmaster@gmail.com"


def test_unconfigured_relay_is_skipped(catalog, caplog):
    called = []
    notifier = QuoteNotifier(Settings(), catalog, sender=lambda **kw: called.append(kw))

    with caplog.at_level(logging.WARNING, logger="quotedesk.notifier"):
        assert notifier.notify(make_quote()) is False
        assert notifier.verify() is False
    assert called == []
    assert "not configured" in caplog.text


def test_relay_failures_are_logged_not_raised(settings, catalog, caplog):
    def failing_sender(**kwargs):
        raise NotificationError("401 from relay", kind=NotificationError.AUTH)

    notifier = QuoteNotifier(settings, catalog, sender=failing_sender)
    with caplog.at_level(logging.ERROR, logger="quotedesk.notifier"):
        assert notifier.notify(make_quote()) is False
    assert "Authentication failed" in caplog.text


def test_unexpected_sender_errors_are_swallowed(settings, catalog):
    def broken_sender(**kwargs):
        raise RuntimeError("bug in sender")

    assert QuoteNotifier(settings, catalog, sender=broken_sender).notify(make_quote()) is False


def test_verify_when_configured(notifier):
    assert notifier.verify() is True


# ---------------- Mailgun client ----------------

class FakeResponse:
    def __init__(self, status_code, body=None):
        self.status_code = status_code
        self._body = body or {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)

    def json(self):
        return self._body


def send(**overrides):
    kwargs = dict(to="owner@example.com", subject="s", text="t", domain="mg.example.com", api_key="key")
    kwargs.update(overrides)
    return mailgun_client.send_email(**kwargs)


def test_send_email_posts_to_mailgun(monkeypatch):
    captured = {}

    def fake_post(url, auth, data, timeout):
        captured.update(url=url, auth=auth, data=data, timeout=timeout)
        return FakeResponse(200, {"id": "<abc@mg>"})

    monkeypatch.setattr(mailgun_client.requests, "post", fake_post)
    assert send(html="<p>t</p>") == "<abc@mg>"
    assert captured["url"] == "https://api.mailgun.net/v3/mg.example.com/messages"
    assert captured["auth"] == ("api", "key")
    assert captured["data"]["to"] == ["owner@example.com"]
    assert captured["data"]["html"] == "<p>t</p>"


def test_send_email_classifies_failures(monkeypatch):
    def classify(post):
        monkeypatch.setattr(mailgun_client.requests, "post", post)
        try:
            send()
        except NotificationError as e:
            return e.kind
        return None

    assert classify(lambda *a, **k: FakeResponse(401)) == NotificationError.AUTH
    assert classify(lambda *a, **k: FakeResponse(500)) == NotificationError.RELAY

    def refuse(*a, **k):
        raise requests.ConnectionError("refused")
    assert classify(refuse) == NotificationError.CONNECTION

    def slow(*a, **k):
        raise requests.Timeout("timed out")
    assert classify(slow) == NotificationError.CONNECTION
