import logging
import requests
from quotedesk.errors import NotificationError

log = logging.getLogger("quotedesk.mail")

DEFAULT_BASE_URL = "https://api.mailgun.net/v3"


def send_email(
    to: str,
    subject: str,
    text: str,
    *,
    domain: str,
    api_key: str,
    sender_name: str = "QuoteDesk Notifications",
    html: str | None = None,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = 10,
) -> str:
    """
    Send a notification email via the Mailgun API.
    Returns the relay's message id; raises NotificationError on any failure.
    """
    data = {
        "from": f"{sender_name} <postmaster@{domain}>",
        "to": [to],
        "subject": subject,
        "text": text,
    }
    if html:
        data["html"] = html

    try:
        response = requests.post(
            f"{base_url}/{domain}/messages",
            auth=("api", api_key),
            data=data,
            timeout=timeout,
        )
        response.raise_for_status()
    except requests.HTTPError as e:
        code = e.response.status_code if e.response is not None else None
        kind = NotificationError.AUTH if code in (401, 403) else NotificationError.RELAY
        raise NotificationError(f"Mailgun rejected message (status {code})", kind=kind) from e
    except (requests.ConnectionError, requests.Timeout) as e:
        raise NotificationError(f"Could not reach Mailgun: {e}", kind=NotificationError.CONNECTION) from e
    except requests.RequestException as e:
        raise NotificationError(f"Mailgun request failed: {e}", kind=NotificationError.RELAY) from e

    try:
        message_id = response.json().get("id", "")
    except ValueError:
        message_id = ""
    log.debug("Mailgun accepted message to %s (status %s)", to, response.status_code)
    return message_id
