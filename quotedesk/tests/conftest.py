import os
import tempfile

# Keep the module-level app in quotedesk.main away from the working directory.
os.environ.setdefault("DATA_FILE", os.path.join(tempfile.mkdtemp(prefix="quotedesk-"), "quotes.json"))

import pytest
from fastapi.testclient import TestClient

from quotedesk.catalog import Catalog
from quotedesk.lifecycle import QuoteManager
from quotedesk.main import create_app
from quotedesk.notifier import QuoteNotifier
from quotedesk.repo import JsonFileStore
from quotedesk.runtime_settings import DEFAULT_SITE_CONFIG, Settings


def run_inline(fn, *args):
    fn(*args)


@pytest.fixture
def catalog():
    return Catalog(DEFAULT_SITE_CONFIG)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATA_FILE=str(tmp_path / "data" / "quotes.json"),
        NOTIFICATIONS_EMAIL="owner@example.com",
        MAILGUN_DOMAIN="mg.example.com",
        MAILGUN_API_KEY="key-test",
    )


@pytest.fixture
def sent_emails():
    return []


@pytest.fixture
def notifier(settings, catalog, sent_emails):
    def fake_sender(**kwargs):
        sent_emails.append(kwargs)
        return "<msg-1@mg.example.com>"
    return QuoteNotifier(settings, catalog, sender=fake_sender)


@pytest.fixture
def store(settings):
    return JsonFileStore(settings.DATA_FILE)


@pytest.fixture
def manager(store, catalog, notifier):
    return QuoteManager(store, catalog, notifier=notifier, dispatch=run_inline)


@pytest.fixture
def app(settings, store, notifier, catalog):
    return create_app(settings=settings, store=store, notifier=notifier, dispatch=run_inline, catalog=catalog)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def valid_payload():
    return {
        "name": "Jane Roe",
        "email": "jane@x.com",
        "phone": "+15551234567",
        "projectType": "website",
        "budget": "under-5k",
        "timeline": "flexible",
        "description": "Need a 5-page brochure site for my bakery",
    }
