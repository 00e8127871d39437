from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
import logging
import threading

from quotedesk.catalog import Catalog, INITIAL_STATUS
from quotedesk.classes.quote import QuoteRequest, parse_timestamp, utc_now_iso
from quotedesk.errors import InvalidStatus, NotFound
from quotedesk.repo import RecordStore
from quotedesk.schemas import QuoteSubmission

log = logging.getLogger("quotedesk.lifecycle")

ALL = "all"
DEFAULT_SORT = "createdAt"
DEFAULT_ORDER = "desc"

DATE_SORT_FIELDS = {"createdAt": "created_at", "updatedAt": "updated_at"}
CHOICE_SORT_FIELDS = {"projectType": "project_type", "budget": "budget", "timeline": "timeline", "status": "status"}
TEXT_SORT_FIELDS = {"name": "name", "email": "email", "company": "company", "phone": "phone"}

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _detached(fn: Callable[..., Any], *args: Any) -> None:
    """Run fn on a daemon thread; nothing waits on it or sees its result."""
    threading.Thread(target=fn, args=args, daemon=True, name="quote-notify").start()


def _active(value: Optional[str]) -> bool:
    return bool(value) and value != ALL


class QuoteManager:
    """Owns the quote request lifecycle: create, query, status changes, delete."""

    def __init__(
        self,
        store: RecordStore,
        catalog: Catalog,
        notifier: Any = None,
        dispatch: Optional[Callable[..., None]] = None,
        clock: Callable[[], str] = utc_now_iso,
    ) -> None:
        self.store = store
        self.catalog = catalog
        self.notifier = notifier
        self.dispatch = dispatch or _detached
        self.clock = clock

    # ---------------- Mutations ----------------

    def create(self, submission: QuoteSubmission) -> QuoteRequest:
        """Persist a validated submission as a new quote and fire the notifier.

        Raises StorageWriteError when the collection cannot be saved; the
        quote then does not exist.
        """
        quote = QuoteRequest.from_submission(submission, INITIAL_STATUS, self.clock())
        quotes = self.store.read_all()
        quotes.append(quote)
        self.store.write_all(quotes)
        log.info("Quote %s created for %s", quote.id, quote.name, extra={"quote_id": quote.id})

        if self.notifier is not None:
            self.dispatch(self.notifier.notify, quote)
        return quote

    def update_status(self, quote_id: str, status: Any) -> QuoteRequest:
        if not self.catalog.contains("status", status):
            raise InvalidStatus(status, allowed=self.catalog.statuses)

        quotes = self.store.read_all()
        idx = self._index_of(quotes, quote_id)
        updated = quotes[idx].with_status(status, self.clock())
        quotes[idx] = updated
        self.store.write_all(quotes)
        log.info("Quote %s moved to %s", quote_id, status, extra={"quote_id": quote_id, "status": status})
        return updated

    def delete(self, quote_id: str) -> None:
        quotes = self.store.read_all()
        idx = self._index_of(quotes, quote_id)
        del quotes[idx]
        self.store.write_all(quotes)
        log.info("Quote %s deleted", quote_id, extra={"quote_id": quote_id})

    def delete_all(self) -> int:
        """Irreversibly remove every quote. Returns how many were removed."""
        count = len(self.store.read_all())
        self.store.write_all([])
        log.warning("All %d quotes deleted", count)
        return count

    # ---------------- Queries ----------------

    def get(self, quote_id: str) -> QuoteRequest:
        quotes = self.store.read_all(strict=True)
        return quotes[self._index_of(quotes, quote_id)]

    def list(
        self,
        status: Optional[str] = None,
        project_type: Optional[str] = None,
        sort_by: Optional[str] = DEFAULT_SORT,
        order: Optional[str] = DEFAULT_ORDER,
    ) -> List[QuoteRequest]:
        quotes = self.store.read_all(strict=True)
        if _active(status):
            quotes = [q for q in quotes if q.status == status]
        if _active(project_type):
            quotes = [q for q in quotes if q.project_type == project_type]

        key = self._sort_key(sort_by or DEFAULT_SORT)
        if key is None:
            return quotes
        return sorted(quotes, key=key, reverse=(order or DEFAULT_ORDER) != "asc")

    def stats(self) -> Dict[str, int]:
        quotes = self.store.read_all(strict=True)
        counts: Dict[str, int] = {"total": len(quotes)}
        for s in self.catalog.statuses:
            counts[s] = 0
        for q in quotes:
            if q.status in counts:
                counts[q.status] += 1
        return counts

    # ---------------- Helpers ----------------

    @staticmethod
    def _index_of(quotes: List[QuoteRequest], quote_id: str) -> int:
        for i, q in enumerate(quotes):
            if q.id == quote_id:
                return i
        raise NotFound(quote_id)

    def _sort_key(self, sort_by: str) -> Optional[Callable[[QuoteRequest], Any]]:
        """Comparison per field type; None means keep insertion order."""
        if sort_by in DATE_SORT_FIELDS:
            attr = DATE_SORT_FIELDS[sort_by]

            def by_date(q: QuoteRequest) -> datetime:
                try:
                    return parse_timestamp(getattr(q, attr) or "")
                except ValueError:
                    return _EPOCH
            return by_date

        if sort_by in CHOICE_SORT_FIELDS:
            attr = CHOICE_SORT_FIELDS[sort_by]
            return lambda q: self.catalog.rank(sort_by, getattr(q, attr))

        if sort_by in TEXT_SORT_FIELDS:
            attr = TEXT_SORT_FIELDS[sort_by]
            return lambda q: (getattr(q, attr) or "").casefold()

        return None
